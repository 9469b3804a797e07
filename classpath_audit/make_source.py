"""Logic for turning a locator into a source."""

import logging
from typing import Any

from classpath_audit.locator import locator_to_path
from classpath_audit.models import Source, SourceKind

logger = logging.getLogger(__name__)


def make_source(locator: str, loader: Any) -> Source | None:
    """Create the source a locator denotes, or None for unsupported schemes.

    A locator pointing at a regular file is an archive; anything else,
    including a path that does not exist, is treated as a directory.
    """
    try:
        path = locator_to_path(locator)
    except ValueError:
        logger.warning("Can not parse the locator %s", locator)
        return None
    if path is None:
        logger.warning("Skipping %s, only local locators are supported", locator)
        return None
    kind = SourceKind.ARCHIVE if path.is_file() else SourceKind.DIRECTORY
    return Source(locator=locator, loader=loader, kind=kind, path=path)
