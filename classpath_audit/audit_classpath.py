"""Audit a class path for class files offered by more than one source.

Builds a loader chain from the given archives and directories, indexes every
entry, and defines each redundant class once per source so that the copies
can be compared. Optionally writes a JSON report and fails when redundancy is
found.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from classpath_audit.class_collector import ClassCollector
from classpath_audit.compute_config_hash import compute_config_hash
from classpath_audit.errors import RedundantClassPathError
from classpath_audit.load_config import load_config
from classpath_audit.loader_chain import loader_chain_from_paths
from classpath_audit.redundancy_report import RedundancyReport

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def _configure_logging(level_name: str, *, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _print_summary(collector: ClassCollector) -> None:
    sources = collector.get_sources()
    redundant = collector.get_redundant()
    print(
        f"Indexed {len(collector.get_index())} entries from {len(sources)} sources."
    )
    if not redundant:
        print("No redundant classes found.")
        return
    print(f"Found {len(redundant)} redundant classes:")
    for name, observations in redundant.items():
        print(f"  {name}")
        for position, observation in enumerate(observations):
            marker = "*" if position == 0 else "-"
            status = ""
            if observation.resolved and observation.definition is None:
                status = " (could not be loaded)"
            print(f"    {marker} {observation.source.locator}{status}")


def run_audit(args: argparse.Namespace) -> int:
    """Execute the audit and return the process exit code."""
    config = load_config(args.config)
    _configure_logging(config["logging"]["level"], verbose=args.verbose)

    loader = loader_chain_from_paths(args.paths, args.parent or [])
    collector = ClassCollector(config)
    collector.analyze(loader)
    _print_summary(collector)

    if args.report:
        report = RedundancyReport(
            collector,
            compute_config_hash(config),
            include_constant_pool=config["report"]["include_constant_pool"],
            include_index=config["report"]["include_index"],
        )
        report.generate_report(str(args.report))
        print(f"Report written to: {args.report}")

    if args.assert_no_redundant:
        try:
            collector.assert_no_redundant_class_path()
        except RedundantClassPathError:
            print("Redundant class path detected.")
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the class path audit."""
    ap = argparse.ArgumentParser(
        description="Find class files offered by more than one class path entry.",
    )
    ap.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="Archives and directories of the application class path, in order",
    )
    ap.add_argument(
        "--parent",
        action="append",
        type=Path,
        metavar="PATH",
        help="Archive or directory of the parent loader (repeatable)",
    )
    ap.add_argument(
        "--config",
        help="Path to a YAML configuration file",
    )
    ap.add_argument(
        "--report",
        type=Path,
        help="Write a JSON report to this file",
    )
    ap.add_argument(
        "--assert",
        dest="assert_no_redundant",
        action="store_true",
        help="Exit with status 1 when redundant classes are found",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every collected entry",
    )
    args = ap.parse_args(argv)
    return run_audit(args)


if __name__ == "__main__":
    raise SystemExit(main())
