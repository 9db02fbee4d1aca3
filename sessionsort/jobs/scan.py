"""Image discovery.

Walks a source directory and produces timestamped items for every image
file. Unreadable entries are logged, recorded and skipped; one bad file
never aborts the scan.
"""

import logging
import os
from pathlib import Path
from typing import AbstractSet, Iterable, Optional, Union

from ..analysis.timestamps import TimestampSource, file_timestamp
from ..models.item import Item, ScanError, ScanResult

logger = logging.getLogger(__name__)

# Image file extensions supported for sorting (compared lower-case)
IMAGE_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    # RAW formats
    ".nef",
}


def is_image_file(
    path: Union[Path, str], extensions: AbstractSet[str] = IMAGE_EXTENSIONS
) -> bool:
    """Check the file extension case-insensitively (extensions lower-case)."""
    return Path(path).suffix.lower() in extensions


def _is_within(path: Path, parent: Path) -> bool:
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def scan_directory(
    root: Union[Path, str],
    extensions: Optional[Iterable[str]] = None,
    timestamp_source: Union[TimestampSource, str] = TimestampSource.AUTO,
    exclude: Iterable[Union[Path, str]] = (),
) -> ScanResult:
    """Discover image files under root and timestamp them.

    Args:
        root: Directory to walk recursively
        extensions: Accepted extensions (defaults to IMAGE_EXTENSIONS)
        timestamp_source: How to timestamp each file
        exclude: Directories to leave out (e.g. a destination inside root)

    Returns:
        ScanResult with items in walk order and every skipped entry
    """
    root = Path(root)
    accepted = {ext.lower() for ext in (extensions or IMAGE_EXTENSIONS)}
    # Only directories strictly below root can be pruned; an excluded path
    # that is root itself or one of its ancestors would hide the whole tree
    root_resolved = root.resolve()
    excluded = [
        ex
        for ex in (Path(p).resolve() for p in exclude)
        if ex != root_resolved and _is_within(ex, root_resolved)
    ]
    result = ScanResult()

    def _on_error(error: OSError) -> None:
        path = Path(error.filename) if error.filename else root
        logger.warning(f"Cannot read directory {path}: {error}")
        result.errors.append(ScanError(path=path, error=str(error)))

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        current = Path(dirpath)
        if excluded:
            dirnames[:] = [
                d
                for d in dirnames
                if not any(_is_within((current / d).resolve(), ex) for ex in excluded)
            ]
        dirnames.sort()

        for filename in sorted(filenames):
            path = current / filename
            if not is_image_file(path, accepted):
                continue
            try:
                st = path.stat()
                timestamp = file_timestamp(path, timestamp_source, stat_result=st)
            except OSError as e:
                logger.warning(f"Skipping unreadable file {path}: {e}")
                result.errors.append(ScanError(path=path, error=str(e)))
                continue
            result.items.append(Item(timestamp=timestamp, path=path))

    logger.info(
        f"Discovered {len(result.items)} images under {root} "
        f"({len(result.errors)} skipped)"
    )
    return result

