"""A single-purpose loader that defines one class from one source.

The normal loader chain returns the first definition of a name it finds.
``IsolatedLoader`` short-circuits that search for its one target name and
defines the class from the bytes of a specific source, so definitions of the
same name from several sources can be held and compared side by side. Every
other name is delegated to the parent loader.
"""

import logging
import re
from typing import Any

from classpath_audit.class_definition import ClassDefinition, define_class
from classpath_audit.errors import (
    ClassNotFoundError,
    EntryNotFoundError,
    EntryReadError,
)
from classpath_audit.models import CLASS_SUFFIX, Source
from classpath_audit.read_entry import read_entry

logger = logging.getLogger(__name__)

_SEPARATORS_RE = re.compile(r"[/\\]")


def to_binary_name(entry_name: str) -> str:
    """Convert a class file entry name into a dotted binary name.

    ``a/b\\c.class`` becomes ``a.b.c``.
    """
    name = _SEPARATORS_RE.sub(".", entry_name)
    if name.endswith(CLASS_SUFFIX):
        name = name[: -len(CLASS_SUFFIX)]
    return name


class IsolatedLoader:
    """Loads ``entry_name`` from ``source`` and nothing else."""

    def __init__(self, parent: Any, source: Source, entry_name: str) -> None:
        """Initialize the loader for one entry of one source."""
        self.parent = parent
        self.source = source
        self.entry_name = entry_name
        self.class_name = to_binary_name(entry_name)
        self.name = f"isolated:{self.class_name}@{source.locator}"
        self._definition: ClassDefinition | None = None

    def is_target(self, name: str) -> bool:
        """Return True for the entry name or the binary name of the target."""
        return name in (self.entry_name, self.class_name)

    def load_class(self, name: str) -> ClassDefinition | None:
        """Return the definition of ``name``.

        The target name is materialized from this loader's source, which
        returns None when its bytes are unavailable. Other names go to the
        parent, and ClassNotFoundError is raised when the parent can not load
        them.
        """
        if self.is_target(name):
            if self._definition is None:
                self._definition = self._materialize()
            return self._definition

        load_class = getattr(self.parent, "load_class", None)
        if not callable(load_class):
            raise ClassNotFoundError(name)
        return load_class(name)

    def _materialize(self) -> ClassDefinition | None:
        try:
            data = read_entry(self.source, self.entry_name)
        except EntryNotFoundError:
            logger.warning(
                "Could not find the class %s in %s",
                self.entry_name,
                self.source.locator,
            )
            return None
        except EntryReadError as e:
            logger.warning("Could not read the class %s: %s", self.entry_name, e)
            return None

        return define_class(self.class_name, data, self, self.source)


def load_isolated(
    entry_name: str, source: Source, parent: Any
) -> ClassDefinition | None:
    """Define ``entry_name`` from ``source`` through a fresh isolated loader."""
    return IsolatedLoader(parent, source, entry_name).load_class(entry_name)
