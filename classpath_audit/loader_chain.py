"""Loader chain nodes.

A node has a ``parent`` (or None) and may expose ``get_urls()``, listing
its locators in declaration order, and ``load_class(name)``. The classes
here build such chains from filesystem paths.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

from classpath_audit.class_definition import ClassDefinition, define_class
from classpath_audit.errors import (
    ClassFormatError,
    ClassNotFoundError,
    EntryNotFoundError,
    EntryReadError,
)
from classpath_audit.locator import path_to_locator
from classpath_audit.make_source import make_source
from classpath_audit.models import CLASS_SUFFIX, Source
from classpath_audit.read_entry import read_entry

logger = logging.getLogger(__name__)


class LoaderNode(Protocol):
    """The part of a loader the enumerator relies on."""

    parent: Any


class OpaqueLoader:
    """A loader that exposes no sources and defines no classes.

    Stands in for bootstrap and platform loaders at the top of a chain.
    """

    def __init__(self, parent: Any = None, name: str | None = None) -> None:
        """Initialize the loader with an optional parent."""
        self.parent = parent
        self.name = name

    def load_class(self, name: str) -> ClassDefinition:
        """Delegate to the parent, or fail."""
        load_class = getattr(self.parent, "load_class", None)
        if callable(load_class):
            return load_class(name)
        raise ClassNotFoundError(name)


class UrlClassLoader:
    """A loader over an ordered list of archive and directory locators.

    ``load_class`` asks the parent first and only then searches its own
    locators in order. Definitions are cached per name.
    """

    def __init__(
        self,
        urls: Iterable[str],
        parent: Any = None,
        name: str | None = None,
    ) -> None:
        """Initialize the loader with its locators and parent."""
        self.urls = list(urls)
        self.parent = parent
        self.name = name
        self._classes: dict[str, ClassDefinition] = {}
        self._defining: set[str] = set()
        self._sources: list[Source] | None = None

    def get_urls(self) -> list[str]:
        """Return the locators in declaration order."""
        return list(self.urls)

    def sources(self) -> list[Source]:
        """Return the supported sources among this loader's locators."""
        if self._sources is None:
            self._sources = [
                s for s in (make_source(u, self) for u in self.urls) if s is not None
            ]
        return self._sources

    def load_class(self, name: str) -> ClassDefinition:
        """Return the definition of ``name`` using parent-first delegation."""
        if name in self._classes:
            return self._classes[name]

        load_class = getattr(self.parent, "load_class", None)
        if callable(load_class):
            try:
                return load_class(name)
            except ClassNotFoundError:
                pass

        return self.find_class(name)

    def find_class(self, name: str) -> ClassDefinition:
        """Define ``name`` from the first of this loader's sources holding it."""
        if name in self._defining:
            msg = f"Class circularity: {name}"
            raise ClassFormatError(msg)

        entry_name = name.replace(".", "/") + CLASS_SUFFIX
        for source in self.sources():
            try:
                data = read_entry(source, entry_name)
            except EntryNotFoundError:
                continue
            except EntryReadError as e:
                logger.warning("Skipping unreadable %s: %s", entry_name, e)
                continue
            self._defining.add(name)
            try:
                definition = define_class(name, data, self, source)
            finally:
                self._defining.discard(name)
            self._classes[name] = definition
            return definition
        raise ClassNotFoundError(name)

    def __repr__(self) -> str:
        return f"UrlClassLoader(name={self.name!r}, urls={self.urls!r})"


def loader_chain_from_paths(
    paths: Iterable[Path | str],
    parent_paths: Iterable[Path | str] = (),
) -> UrlClassLoader:
    """Build a two level chain: ``paths`` over ``parent_paths`` over a root.

    The parent level is left out when ``parent_paths`` is empty.
    """
    root = OpaqueLoader(name="bootstrap")
    parent_urls = [path_to_locator(p) for p in parent_paths]
    parent: Any = root
    if parent_urls:
        parent = UrlClassLoader(parent_urls, parent=root, name="parent")
    return UrlClassLoader(
        [path_to_locator(p) for p in paths], parent=parent, name="application"
    )
