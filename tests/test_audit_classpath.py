"""Tests for the audit command line entry point."""

import json
from pathlib import Path

import pytest
import yaml

from classpath_audit.audit_classpath import main
from classpath_audit.locator import path_to_locator
from tests.class_bytes import JarFactory, build_class


def test_clean_class_path_exits_zero(
    make_jar: JarFactory, capsys: pytest.CaptureFixture[str]
) -> None:
    """Verify the summary for a class path without redundancy."""
    jar = make_jar("a.jar", {"pkg/X.class": build_class("pkg/X")})

    assert main([str(jar), "--assert"]) == 0

    out = capsys.readouterr().out
    assert "Indexed 1 entries from 1 sources." in out
    assert "No redundant classes found." in out


def test_redundancy_fails_with_assert(
    make_jar: JarFactory, capsys: pytest.CaptureFixture[str]
) -> None:
    """Verify the exit code and listing when a class is offered twice."""
    a1 = make_jar("a1.jar", {"pkg/X.class": build_class("pkg/X")})
    a2 = make_jar("a2.jar", {"pkg/X.class": b"broken"})

    assert main([str(a1), str(a2), "--assert"]) == 1

    out = capsys.readouterr().out
    assert "Found 1 redundant classes:" in out
    assert f"* {path_to_locator(a1)}" in out
    assert f"- {path_to_locator(a2)} (could not be loaded)" in out
    assert "Redundant class path detected." in out


def test_redundancy_without_assert_exits_zero(make_jar: JarFactory) -> None:
    """Verify that redundancy only fails the run when asked to."""
    a1 = make_jar("a1.jar", {"pkg/X.class": build_class("pkg/X")})
    a2 = make_jar("a2.jar", {"pkg/X.class": build_class("pkg/X")})

    assert main([str(a1), str(a2)]) == 0


def test_parent_paths_and_report(make_jar: JarFactory, tmp_path: Path) -> None:
    """Verify that parent archives are enumerated after the application ones."""
    app = make_jar("app.jar", {"pkg/X.class": build_class("pkg/X")})
    parent = make_jar("parent.jar", {"pkg/X.class": build_class("pkg/X")})
    report_file = tmp_path / "out" / "report.json"
    report_file.parent.mkdir()
    config_file = tmp_path / "audit.yml"
    config_file.write_text(
        yaml.dump({"report": {"include_index": True}}), encoding="utf-8"
    )

    code = main(
        [
            str(app),
            "--parent",
            str(parent),
            "--report",
            str(report_file),
            "--config",
            str(config_file),
        ]
    )

    assert code == 0
    content = json.loads(report_file.read_text(encoding="utf-8"))
    assert [s["locator"] for s in content["sources"]] == [
        path_to_locator(app),
        path_to_locator(parent),
    ]
    assert content["index"]["pkg/X.class"] == [
        path_to_locator(app),
        path_to_locator(parent),
    ]
    assert content["redundant"][0]["observations"][1]["diff"]["identical_bytes"]


def test_missing_paths_is_a_usage_error() -> None:
    """Verify that at least one class path entry is required."""
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2  # noqa: PLR2004
