"""Comparison of two definitions of the same class from different sources."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from classpath_audit.class_definition import ClassDefinition, MemberInfo


@dataclass
class DefinitionDiff:
    """Differences between two definitions; identity is ignored."""

    identical_bytes: bool
    version_changed: bool = False
    access_flags_changed: bool = False
    super_changed: bool = False
    interfaces_added: list[str] = field(default_factory=list)
    interfaces_removed: list[str] = field(default_factory=list)
    fields_added: list[str] = field(default_factory=list)
    fields_removed: list[str] = field(default_factory=list)
    methods_added: list[str] = field(default_factory=list)
    methods_removed: list[str] = field(default_factory=list)
    constants_added: list[str] = field(default_factory=list)
    constants_removed: list[str] = field(default_factory=list)

    @property
    def is_equivalent(self) -> bool:
        """Return True when the two definitions declare the same class."""
        return self.identical_bytes or not any(
            (
                self.version_changed,
                self.access_flags_changed,
                self.super_changed,
                self.interfaces_added,
                self.interfaces_removed,
                self.fields_added,
                self.fields_removed,
                self.methods_added,
                self.methods_removed,
                self.constants_added,
                self.constants_removed,
            )
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the diff as plain data for the report."""
        return {
            "identical_bytes": self.identical_bytes,
            "equivalent": self.is_equivalent,
            "version_changed": self.version_changed,
            "access_flags_changed": self.access_flags_changed,
            "super_changed": self.super_changed,
            "interfaces": {
                "added": self.interfaces_added,
                "removed": self.interfaces_removed,
            },
            "fields": {"added": self.fields_added, "removed": self.fields_removed},
            "methods": {"added": self.methods_added, "removed": self.methods_removed},
            "constants": {
                "added": self.constants_added,
                "removed": self.constants_removed,
            },
        }


def _added_removed(before: list[str], after: list[str]) -> tuple[list[str], list[str]]:
    """Multiset difference, keeping the order of first appearance."""
    b, a = Counter(before), Counter(after)
    added = list((a - b).elements())
    removed = list((b - a).elements())
    return added, removed


def _signatures(members: list[MemberInfo]) -> list[str]:
    return [m.signature for m in members]


def diff_definitions(first: ClassDefinition, second: ClassDefinition) -> DefinitionDiff:
    """Compare ``second`` against ``first``.

    Constant pools are compared as multisets of rendered constants, since
    compilers are free to order the pool differently.
    """
    if first.digest == second.digest:
        return DefinitionDiff(identical_bytes=True)

    interfaces_added, interfaces_removed = _added_removed(
        first.interface_names, second.interface_names
    )
    fields_added, fields_removed = _added_removed(
        _signatures(first.fields), _signatures(second.fields)
    )
    methods_added, methods_removed = _added_removed(
        _signatures(first.methods), _signatures(second.methods)
    )
    constants_added, constants_removed = _added_removed(
        first.constant_strings(), second.constant_strings()
    )
    return DefinitionDiff(
        identical_bytes=False,
        version_changed=first.version != second.version,
        access_flags_changed=first.access_flags != second.access_flags,
        super_changed=first.super_name != second.super_name,
        interfaces_added=interfaces_added,
        interfaces_removed=interfaces_removed,
        fields_added=fields_added,
        fields_removed=fields_removed,
        methods_added=methods_added,
        methods_removed=methods_removed,
        constants_added=constants_added,
        constants_removed=constants_removed,
    )
