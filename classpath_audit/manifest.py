"""Parsing of JAR manifests and their ``Class-Path`` attribute."""

import logging
import zipfile
from dataclasses import dataclass, field

from classpath_audit.models import MANIFEST_NAME

logger = logging.getLogger(__name__)

CLASS_PATH_ATTRIBUTE = "Class-Path"


@dataclass
class Manifest:
    """Main attributes and per-entry sections of a manifest.

    Attribute names are stored lower-cased because the manifest format
    compares them case-insensitively.
    """

    main_attributes: dict[str, str] = field(default_factory=dict)
    entries: dict[str, dict[str, str]] = field(default_factory=dict)

    def get_main_attribute(self, name: str) -> str | None:
        """Return a main attribute value, ignoring the case of the name."""
        return self.main_attributes.get(name.lower())


def _iter_logical_lines(text: str) -> list[str]:
    """Join continuation lines (starting with one space) to their header."""
    lines: list[str] = []
    for raw in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if raw.startswith(" ") and lines and lines[-1]:
            lines[-1] += raw[1:]
        else:
            lines.append(raw)
    return lines


def parse_manifest(text: str) -> Manifest:
    """Parse manifest text into main attributes and named sections."""
    manifest = Manifest()
    section = manifest.main_attributes
    in_main = True
    for line in _iter_logical_lines(text):
        if not line:
            # A blank line closes the current section.
            in_main = False
            section = {}
            continue
        name, sep, value = line.partition(":")
        if not sep:
            logger.debug("Ignoring malformed manifest line %r", line)
            continue
        key = name.strip().lower()
        value = value.strip()
        if not in_main and key == "name" and not section:
            manifest.entries[value] = section
            continue
        section[key] = value
    return manifest


def read_manifest(zip_file: zipfile.ZipFile) -> Manifest | None:
    """Read the manifest of an open archive, or None when it has none."""
    try:
        data = zip_file.read(MANIFEST_NAME)
    except KeyError:
        return None
    return parse_manifest(data.decode("utf-8", errors="replace"))


def class_path_references(manifest: Manifest | None) -> list[str]:
    """Return the whitespace separated ``Class-Path`` references."""
    if manifest is None:
        return []
    value = manifest.get_main_attribute(CLASS_PATH_ATTRIBUTE)
    if value is None:
        return []
    return value.split()
