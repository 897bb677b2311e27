"""Pytest configuration: synthetic image fixtures and metrics isolation."""

from __future__ import annotations

from pathlib import Path

import pytest

from image_inventory.image_engine.metrics import metrics
from tests.helpers.images import write_image


@pytest.fixture
def make_image(tmp_path: Path):
    def _make(name: str, width: int, height: int, fmt: str | None = None) -> Path:
        path = tmp_path / name
        write_image(path, width, height, fmt)
        return path

    return _make


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
