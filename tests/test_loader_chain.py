"""Tests for the URL loader chain used to build audits from paths."""

from pathlib import Path

import pytest

from classpath_audit.errors import ClassFormatError, ClassNotFoundError
from classpath_audit.loader_chain import (
    OpaqueLoader,
    UrlClassLoader,
    loader_chain_from_paths,
)
from classpath_audit.locator import path_to_locator
from tests.class_bytes import build_class, write_jar


def test_chain_from_paths(tmp_path: Path) -> None:
    """Verify the two level chain layout and its locators."""
    app = write_jar(tmp_path / "app.jar", {})
    lib = write_jar(tmp_path / "lib.jar", {})
    loader = loader_chain_from_paths([app], [lib])

    assert loader.get_urls() == [path_to_locator(app)]
    assert isinstance(loader.parent, UrlClassLoader)
    assert loader.parent.get_urls() == [path_to_locator(lib)]
    assert isinstance(loader.parent.parent, OpaqueLoader)
    assert loader.parent.parent.parent is None


def test_chain_without_parent_paths(tmp_path: Path) -> None:
    """Verify that the parent level is omitted when it has no paths."""
    loader = loader_chain_from_paths([tmp_path])
    assert isinstance(loader.parent, OpaqueLoader)


def test_parent_first_delegation(tmp_path: Path) -> None:
    """Verify that the parent's copy of a class wins over the child's."""
    child_x = build_class("pkg/X", methods=[("c", "()V")])
    parent_x = build_class("pkg/X", methods=[("p", "()V")])
    child_jar = write_jar(tmp_path / "child.jar", {"pkg/X.class": child_x})
    parent_jar = write_jar(tmp_path / "parent.jar", {"pkg/X.class": parent_x})
    loader = loader_chain_from_paths([child_jar], [parent_jar])

    definition = loader.load_class("pkg.X")
    assert [m.name for m in definition.methods] == ["p"]
    assert definition.loader is loader.parent
    assert loader.load_class("pkg.X") is definition


def test_first_source_wins_within_a_loader(tmp_path: Path) -> None:
    """Verify that locators are searched in declaration order."""
    first = tmp_path / "first"
    first.mkdir()
    (first / "pkg").mkdir()
    (first / "pkg" / "X.class").write_bytes(build_class("pkg/X", fields=[("a", "I")]))
    second_x = build_class("pkg/X", fields=[("b", "I")])
    second = write_jar(tmp_path / "second.jar", {"pkg/X.class": second_x})
    loader = UrlClassLoader([path_to_locator(first), path_to_locator(second)])

    definition = loader.load_class("pkg.X")
    assert [f.name for f in definition.fields] == ["a"]
    assert definition.source is not None
    assert definition.source.path == first.resolve()


def test_supertype_is_linked_through_the_chain(tmp_path: Path) -> None:
    """Verify that a super class in the parent level is resolved."""
    base = build_class("pkg/Base")
    impl = build_class("pkg/Impl", "pkg/Base")
    parent_jar = write_jar(tmp_path / "base.jar", {"pkg/Base.class": base})
    child_jar = write_jar(tmp_path / "impl.jar", {"pkg/Impl.class": impl})
    loader = loader_chain_from_paths([child_jar], [parent_jar])

    definition = loader.load_class("pkg.Impl")
    assert definition.superclass is not None
    assert definition.superclass.name == "pkg.Base"
    assert definition.superclass.loader is loader.parent


def test_unknown_class(tmp_path: Path) -> None:
    """Verify that a missing class raises ClassNotFoundError."""
    loader = loader_chain_from_paths([write_jar(tmp_path / "a.jar", {})])
    with pytest.raises(ClassNotFoundError):
        loader.load_class("pkg.Nope")


def test_class_circularity(tmp_path: Path) -> None:
    """Verify that mutually inheriting classes are rejected."""
    jar = write_jar(
        tmp_path / "cycle.jar",
        {
            "pkg/A.class": build_class("pkg/A", "pkg/B"),
            "pkg/B.class": build_class("pkg/B", "pkg/A"),
        },
    )
    loader = loader_chain_from_paths([jar])
    with pytest.raises(ClassFormatError, match="circularity"):
        loader.load_class("pkg.A")


def test_unsupported_locators_are_ignored() -> None:
    """Verify that remote locators do not become sources."""
    loader = UrlClassLoader(["http://example.com/a.jar"])
    assert loader.sources() == []
