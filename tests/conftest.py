"""Shared fixtures for sessionsort tests."""

import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, List

import pytest

from sessionsort.models.item import Item

BASE_TIME = datetime(2024, 3, 5, 10, 0, 0)


def make_items(*offsets_minutes: float, base: datetime = BASE_TIME) -> List[Item]:
    """Items at the given minute offsets from base, named by position."""
    return [
        Item(
            timestamp=base + timedelta(minutes=offset),
            path=Path(f"/photos/img_{i:03d}.jpg"),
        )
        for i, offset in enumerate(offsets_minutes)
    ]


@pytest.fixture
def items_factory() -> Callable[..., List[Item]]:
    return make_items


@pytest.fixture
def photo_factory(tmp_path: Path) -> Callable[..., Path]:
    """Create a fake photo file with a given modification time."""

    def _make(
        name: str,
        when: datetime,
        content: bytes = b"",
        directory: Path = tmp_path / "source",
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(content or f"photo {name}".encode())
        ts = when.timestamp()
        os.utime(path, (ts, ts))
        return path

    return _make
