"""Index of entry names to the sources that offer them."""

import logging
import zipfile
from collections.abc import Callable, Mapping
from types import MappingProxyType

from classpath_audit.models import Observation, Source

logger = logging.getLogger(__name__)

ManifestHook = Callable[[zipfile.ZipFile, Source], None]


class ResourceIndex:
    """Insertion ordered mapping of entry name to observations.

    Observation lists follow source order, so the first observation of an
    entry is the one the loader chain would actually use.
    """

    def __init__(self) -> None:
        """Initialize an empty index."""
        self.entries: dict[str, list[Observation]] = {}
        self.sources: list[Source] = []

    def add_source(self, source: Source) -> None:
        """Record that a source has been indexed."""
        self.sources.append(source)

    def add_entry(self, entry_name: str, source: Source) -> Observation:
        """Append an observation of ``entry_name`` in ``source``."""
        observation = Observation(entry_name=entry_name, source=source)
        self.entries.setdefault(entry_name, []).append(observation)
        logger.debug("Adding the entry %s", entry_name)
        return observation

    def view(self) -> Mapping[str, list[Observation]]:
        """Return a read-only view of the index."""
        return MappingProxyType(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, entry_name: object) -> bool:
        return entry_name in self.entries


def index_archive(
    source: Source,
    index: ResourceIndex,
    on_manifest: ManifestHook | None = None,
) -> bool:
    """Index every entry of an archive source.

    ``on_manifest`` is called with the open archive before its entries are
    listed. Returns False when the archive can not be opened.
    """
    try:
        zip_file = zipfile.ZipFile(source.path)
    except (OSError, zipfile.BadZipFile):
        logger.warning("Not loading from the non-zip file %s", source.path)
        return False

    with zip_file:
        logger.debug("Loading from the jar file %s", source.path)
        index.add_source(source)
        try:
            if on_manifest is not None:
                on_manifest(zip_file, source)
            for info in zip_file.infolist():
                index.add_entry(info.filename, source)
        except (OSError, zipfile.BadZipFile, UnicodeDecodeError):
            logger.warning(
                "Indexing of %s stopped early", source.path, exc_info=True
            )
    return True


def index_directory(source: Source, index: ResourceIndex) -> bool:
    """Index the immediate children of a directory source.

    Children are recorded in name order. Subdirectories are recorded by name
    but not descended into. Returns False when the directory can not be listed.
    """
    logger.debug("Loading from the directory %s", source.locator)
    try:
        names = sorted(child.name for child in source.path.iterdir())
    except (OSError, ValueError):
        logger.warning("Can not list the directory %s", source.path)
        return False

    index.add_source(source)
    for name in names:
        index.add_entry(name, source)
    return True
