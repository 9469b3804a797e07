"""Data models for sources and the observations made on them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from classpath_audit.class_definition import ClassDefinition

CLASS_SUFFIX = ".class"
MANIFEST_NAME = "META-INF/MANIFEST.MF"


class SourceKind(Enum):
    """What a locator points at on disk."""

    ARCHIVE = "archive"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Source:
    """A locator plus the loader that exposed it."""

    locator: str
    loader: Any
    kind: SourceKind
    path: Path

    @property
    def is_archive(self) -> bool:
        """Return True when the source is a ZIP archive."""
        return self.kind is SourceKind.ARCHIVE


@dataclass(eq=False)
class Observation:
    """Records that an entry name was found in a specific source."""

    entry_name: str
    source: Source
    definition: ClassDefinition | None = None
    resolved: bool = False  # isolated load attempted
