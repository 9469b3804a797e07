"""Shared fixtures for the class path audit tests."""

from pathlib import Path

import pytest

from tests.class_bytes import JarFactory, write_jar


@pytest.fixture
def make_jar(tmp_path: Path) -> JarFactory:
    """Return a factory writing archives into the test directory."""

    def _make(
        name: str,
        entries: dict[str, bytes] | None = None,
        manifest: str | None = None,
    ) -> Path:
        return write_jar(tmp_path / name, entries or {}, manifest)

    return _make
