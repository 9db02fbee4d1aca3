"""Timestamp extraction strategies for photo files.

Filesystem times are converted to naive local datetimes. EXIF dates are
naive by nature (cameras record local wall-clock time), so every strategy
yields comparable values.
"""

import logging
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"


class TimestampSource(str, Enum):
    """Where an item's timestamp comes from."""

    AUTO = "auto"  # birth time when reported, else mtime
    MTIME = "mtime"
    EXIF = "exif"  # EXIF capture date, else AUTO


def birth_time(stat_result: os.stat_result) -> Optional[datetime]:
    """File creation time, if the platform reports one."""
    birth = getattr(stat_result, "st_birthtime", None)
    if birth is None:
        return None
    return datetime.fromtimestamp(birth)


def modification_time(stat_result: os.stat_result) -> datetime:
    return datetime.fromtimestamp(stat_result.st_mtime)


def parse_exif_date(value: Union[str, bytes, None]) -> Optional[datetime]:
    """Parse an EXIF date string (``YYYY:MM:DD HH:MM:SS``).

    Returns None for missing, blank or malformed values; some cameras write
    ``0000:00:00 00:00:00`` or slashes instead of colons.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    value = value.strip().strip("\x00").replace("/", ":")
    if not value:
        return None
    try:
        return datetime.strptime(value[:19], EXIF_DATE_FORMAT)
    except ValueError:
        return None


def exif_time(path: Union[Path, str]) -> Optional[datetime]:
    """Capture time from EXIF DateTimeOriginal, falling back to DateTime.

    Returns None when the file has no usable EXIF date or Pillow cannot
    read it (e.g. some RAW formats).
    """
    try:
        with Image.open(path) as img:
            exif = img.getexif()
            original = exif.get_ifd(ExifTags.IFD.Exif).get(
                ExifTags.Base.DateTimeOriginal
            )
            parsed = parse_exif_date(original)
            if parsed is None:
                parsed = parse_exif_date(exif.get(ExifTags.Base.DateTime))
            return parsed
    except (OSError, ValueError, SyntaxError) as e:
        logger.debug(f"No EXIF date for {path}: {e}")
        return None


def file_timestamp(
    path: Union[Path, str],
    source: Union[TimestampSource, str] = TimestampSource.AUTO,
    stat_result: Optional[os.stat_result] = None,
) -> datetime:
    """Determine the timestamp of a photo file.

    Args:
        path: Path to the file
        source: Strategy to use (see TimestampSource)
        stat_result: Already fetched stat of the file, to avoid a second call

    Returns:
        Naive local datetime

    Raises:
        OSError: If the file cannot be stat'ed
    """
    source = TimestampSource(source)
    st = stat_result if stat_result is not None else os.stat(path)

    if source == TimestampSource.MTIME:
        return modification_time(st)

    if source == TimestampSource.EXIF:
        captured = exif_time(path)
        if captured is not None:
            return captured

    return birth_time(st) or modification_time(st)
