"""Logic for selecting the class files offered by more than one source."""

from collections.abc import Mapping

from classpath_audit.models import CLASS_SUFFIX, Observation


def is_class_entry(entry_name: str) -> bool:
    """Check if the entry is a class file."""
    return entry_name.endswith(CLASS_SUFFIX)


def find_redundant(
    index: Mapping[str, list[Observation]],
) -> dict[str, list[Observation]]:
    """Return the class entries with two or more observations, in index order."""
    return {
        name: observations
        for name, observations in index.items()
        if len(observations) > 1 and is_class_entry(name)
    }
