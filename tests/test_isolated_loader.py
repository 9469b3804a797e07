"""Tests for loading one class from one specific source."""

import logging
from pathlib import Path

import pytest

from classpath_audit.errors import ClassFormatError, ClassNotFoundError
from classpath_audit.isolated_loader import (
    IsolatedLoader,
    load_isolated,
    to_binary_name,
)
from classpath_audit.loader_chain import loader_chain_from_paths
from classpath_audit.locator import path_to_locator
from classpath_audit.make_source import make_source
from classpath_audit.models import Source
from tests.class_bytes import (
    FLAG_ENCRYPTED,
    METHOD_DEFLATE64,
    build_class,
    inflate_declared_size,
    patch_entry_header,
    write_jar,
)


def _source(path: Path) -> Source:
    source = make_source(path_to_locator(path), None)
    assert source is not None
    return source


@pytest.mark.parametrize(
    ("entry_name", "expected"),
    [
        ("pkg/X.class", "pkg.X"),
        ("a/b\\c.class", "a.b.c"),
        ("X.class", "X"),
        ("pkg/Inner$1.class", "pkg.Inner$1"),
        ("pkg/Y.txt", "pkg.Y.txt"),
    ],
)
def test_to_binary_name(entry_name: str, expected: str) -> None:
    """Verify the conversion of entry names to binary names."""
    assert to_binary_name(entry_name) == expected


def test_shadowed_copy_is_loaded_from_its_own_source(tmp_path: Path) -> None:
    """Verify that the second source's bytes are used, not the first's."""
    first = write_jar(
        tmp_path / "a1.jar", {"pkg/X.class": build_class("pkg/X", fields=[("a", "I")])}
    )
    second = write_jar(
        tmp_path / "a2.jar", {"pkg/X.class": build_class("pkg/X", fields=[("b", "J")])}
    )
    chain = loader_chain_from_paths([first, second])

    assert [f.name for f in chain.load_class("pkg.X").fields] == ["a"]
    isolated = load_isolated("pkg/X.class", _source(second), chain)
    assert isolated is not None
    assert [f.name for f in isolated.fields] == ["b"]
    assert isinstance(isolated.loader, IsolatedLoader)
    assert isolated.loader.parent is chain


def test_other_names_are_delegated_to_parent(tmp_path: Path) -> None:
    """Verify that only the target name short-circuits."""
    jar = write_jar(
        tmp_path / "a.jar",
        {
            "pkg/Base.class": build_class("pkg/Base"),
            "pkg/X.class": build_class("pkg/X", "pkg/Base"),
        },
    )
    chain = loader_chain_from_paths([jar])
    loader = IsolatedLoader(chain, _source(jar), "pkg/X.class")

    definition = loader.load_class("pkg.X")
    assert definition is not None
    assert definition.loader is loader
    assert definition.superclass is chain.load_class("pkg.Base")
    assert loader.load_class("pkg/X.class") is definition


def test_missing_parent_raises_class_not_found(tmp_path: Path) -> None:
    """Verify that delegation without a parent fails cleanly."""
    jar = write_jar(tmp_path / "a.jar", {"pkg/X.class": build_class("pkg/X")})
    loader = IsolatedLoader(None, _source(jar), "pkg/X.class")
    with pytest.raises(ClassNotFoundError):
        loader.load_class("pkg.Other")


def test_missing_entry_yields_none(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verify that an entry missing from the archive is logged and absent."""
    jar = write_jar(tmp_path / "a.jar", {})
    with caplog.at_level(logging.WARNING):
        assert load_isolated("pkg/X.class", _source(jar), None) is None
    assert "Could not find the class pkg/X.class" in caplog.text


def test_truncated_entry_yields_none(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verify that a short read is an entry read failure."""
    jar = write_jar(tmp_path / "a.jar", {"pkg/X.class": build_class("pkg/X")})
    inflate_declared_size(jar, "pkg/X.class")
    with caplog.at_level(logging.WARNING):
        assert load_isolated("pkg/X.class", _source(jar), None) is None
    assert "Could not read the class pkg/X.class" in caplog.text


@pytest.mark.parametrize(
    ("method", "flag_bits"),
    [(METHOD_DEFLATE64, 0), (None, FLAG_ENCRYPTED)],
    ids=["unsupported-method", "encrypted"],
)
def test_unreadable_entry_yields_none(
    tmp_path: Path,
    caplog: pytest.LogCaptureFixture,
    method: int | None,
    flag_bits: int,
) -> None:
    """Verify that entries zipfile can not extract are read failures."""
    jar = write_jar(tmp_path / "a.jar", {"pkg/X.class": build_class("pkg/X")})
    patch_entry_header(jar, "pkg/X.class", method=method, flag_bits=flag_bits)
    with caplog.at_level(logging.WARNING):
        assert load_isolated("pkg/X.class", _source(jar), None) is None
    assert "Could not read the class pkg/X.class" in caplog.text


def test_directory_source(tmp_path: Path) -> None:
    """Verify that class files are read from directory sources."""
    (tmp_path / "X.class").write_bytes(build_class("X"))
    definition = load_isolated("X.class", _source(tmp_path), None)
    assert definition is not None
    assert definition.name == "X"
    assert definition.source is not None
    assert definition.source.path == tmp_path.resolve()


def test_malformed_bytes_propagate(tmp_path: Path) -> None:
    """Verify that bytes the definition step rejects raise ClassFormatError."""
    jar = write_jar(tmp_path / "a.jar", {"pkg/X.class": b"\xca\xfe\xba\xbe\x00"})
    with pytest.raises(ClassFormatError):
        load_isolated("pkg/X.class", _source(jar), None)


def test_each_load_is_a_new_definition(tmp_path: Path) -> None:
    """Verify that two isolated loads never share a definition."""
    jar = write_jar(tmp_path / "a.jar", {"pkg/X.class": build_class("pkg/X")})
    source = _source(jar)
    first = load_isolated("pkg/X.class", source, None)
    second = load_isolated("pkg/X.class", source, None)
    assert first is not None
    assert second is not None
    assert first is not second
    assert first.loader is not second.loader
