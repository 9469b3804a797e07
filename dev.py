"""Development script to run checks (formatting, linting, tests) and an audit."""

import argparse
import subprocess
import sys


def run_command(command: list[str], step_name: str) -> None:
    """Run a shell command as a step in the development process."""
    print(f"\n--- Running Step: {step_name} ---")
    print(f"$ {' '.join(command)}")
    try:
        subprocess.run(command, check=True)
    except subprocess.CalledProcessError:
        print(f"\n❌ Failed: {step_name}")
        sys.exit(1)


def main() -> None:
    """Run the development checks and optionally audit a class path."""
    parser = argparse.ArgumentParser(
        description="Run development checks and an optional class path audit."
    )
    parser.add_argument(
        "--ci",
        action="store_true",
        help="Check formatting and lint without rewriting files",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        help="Class path entries to audit after the checks pass",
    )
    args = parser.parse_args()

    if args.ci:
        run_command(["uv", "run", "ruff", "format", "--check"], "Ruff Format Check")
        run_command(["uv", "run", "ruff", "check"], "Ruff Linting")
    else:
        run_command(["uv", "run", "ruff", "format"], "Ruff Formatting")
        run_command(
            ["uv", "run", "ruff", "check", "--fix", "--unsafe-fixes"],
            "Ruff Linting & Fixes",
        )

    run_command(["uv", "run", "pytest"], "Tests")

    if args.paths:
        run_command(
            [
                "uv",
                "run",
                "python",
                "-m",
                "classpath_audit.audit_classpath",
                *args.paths,
            ],
            "Class Path Audit",
        )

    print("\n✅ All development checks passed successfully.")


if __name__ == "__main__":
    main()
