"""Collect the resources a loader chain can see and find redundant classes.

``ClassCollector`` walks the chain child first. For every loader that lists
its locators, it indexes each archive and directory. After the loader's own
locators, it indexes the archives named in their manifests' ``Class-Path``.
Class files found in more than one source are then defined once per source,
through an isolated loader, so that the copies can be compared.
"""

import logging
import zipfile
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from classpath_audit.class_definition import ClassDefinition
from classpath_audit.enumerate_sources import iter_loader_levels, loader_label
from classpath_audit.errors import (
    ClassFormatError,
    ClasspathAuditError,
    RedundantClassPathError,
)
from classpath_audit.expand_class_path import expand_class_path
from classpath_audit.find_redundant import find_redundant
from classpath_audit.isolated_loader import load_isolated
from classpath_audit.loader_chain import LoaderNode
from classpath_audit.make_source import make_source
from classpath_audit.models import Observation, Source
from classpath_audit.resource_index import (
    ResourceIndex,
    index_archive,
    index_directory,
)

logger = logging.getLogger(__name__)


class ClassCollector:
    """Audits a loader chain for class files offered by several sources.

    Every observation of a redundant entry gets a definition attempt, and no
    other observation does. Setting ``analysis.resolve_redundant`` to false
    opts out: redundant observations then stay unresolved as well.
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        """Initialize the collector, optionally with the analysis config."""
        analysis = (config or {}).get("analysis", {})
        self.resolve_redundant = bool(analysis.get("resolve_redundant", True))
        self._index = ResourceIndex()
        self._redundant: dict[str, list[Observation]] | None = None
        self._seen_locators: set[str] = set()
        self._manifest_locators: dict[str, None] = {}

    def analyze(self, loader: LoaderNode | None) -> None:
        """Index the chain starting at ``loader`` and resolve redundant classes."""
        self._collect(loader)
        self._redundant = find_redundant(self._index.entries)
        if logger.isEnabledFor(logging.DEBUG):
            self._log_redundant()
        if self._redundant and self.resolve_redundant:
            self._analyze_redundant(loader)

    def assert_no_redundant_class_path(self) -> None:
        """Raise RedundantClassPathError if any class file is redundant."""
        if self._redundant is None:
            msg = "analyze() has not been run"
            raise ClasspathAuditError(msg)
        if self._redundant:
            raise RedundantClassPathError

    def get_index(self) -> Mapping[str, list[Observation]]:
        """Return a read-only view of entry name to observations."""
        return self._index.view()

    def get_redundant(self) -> Mapping[str, list[Observation]]:
        """Return a read-only view of the redundant class entries."""
        return MappingProxyType(self._redundant or {})

    def get_sources(self) -> tuple[Source, ...]:
        """Return the indexed sources in enumeration order."""
        return tuple(self._index.sources)

    def _collect(self, loader: LoaderNode | None) -> None:
        self._index = ResourceIndex()
        self._seen_locators = set()
        self._manifest_locators = {}
        for node, urls in iter_loader_levels(loader):
            for url in urls:
                self._handle(url, node, collect_manifest=True)
            for url in list(self._manifest_locators):
                self._handle(url, node, collect_manifest=False)

    def _handle(self, locator: str, loader: Any, *, collect_manifest: bool) -> None:
        if locator in self._seen_locators:
            logger.debug("Already collected %s", locator)
            return
        self._seen_locators.add(locator)

        source = make_source(locator, loader)
        if source is None:
            return
        if source.is_archive:
            hook = self._collect_manifest if collect_manifest else None
            index_archive(source, self._index, on_manifest=hook)
        else:
            index_directory(source, self._index)

    def _collect_manifest(self, zip_file: zipfile.ZipFile, source: Source) -> None:
        for locator in expand_class_path(zip_file, source):
            self._manifest_locators.setdefault(locator, None)

    def _analyze_redundant(self, loader: Any) -> None:
        for entry_name, observations in (self._redundant or {}).items():
            for observation in observations:
                observation.definition = self._load(
                    entry_name, observation.source, loader
                )
                observation.resolved = True

    def _load(
        self, entry_name: str, source: Source, loader: Any
    ) -> ClassDefinition | None:
        try:
            return load_isolated(entry_name, source, loader)
        except ClassFormatError as e:
            logger.warning(
                "The class %s from %s can not be defined: %s",
                entry_name,
                source.locator,
                e,
            )
            return None

    def _log_redundant(self) -> None:
        redundant = self._redundant or {}
        logger.debug("There are %d redundantly defined classes.", len(redundant))
        for entry_name, observations in redundant.items():
            logger.debug("Class %s is defined %d times:", entry_name, len(observations))
            for observation in observations:
                logger.debug(
                    "  %s:%s",
                    loader_label(observation.source.loader),
                    observation.source.locator,
                )
