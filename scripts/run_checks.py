#!/usr/bin/env python3
"""Run repository checks: ruff, pyright and the pytest suite.

Exits non-zero on the first failing check so CI and local tooling can observe
status. Install the tools with ``pip install -e .[dev]``.
"""

from __future__ import annotations

import argparse
import subprocess
import sys

_TARGETS = ["image_inventory", "tests", "scripts"]


def run(cmd: list[str]) -> int:
    print("=>", " ".join(cmd))
    res = subprocess.run(cmd, check=False)
    return res.returncode


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--fix", action="store_true", help="Let ruff apply safe fixes")
    parser.add_argument("--no-types", action="store_true", help="Skip pyright")
    parser.add_argument("--no-tests", action="store_true", help="Skip running pytest")
    args = parser.parse_args()

    ruff = [sys.executable, "-m", "ruff", "check", *(["--fix"] if args.fix else []), *_TARGETS]
    steps: list[tuple[str, list[str]]] = [("ruff", ruff)]
    if not args.no_types:
        steps.append(("pyright", [sys.executable, "-m", "pyright"]))
    if not args.no_tests:
        steps.append(("pytest", [sys.executable, "-m", "pytest", "-q"]))

    for name, cmd in steps:
        rc = run(cmd)
        if rc != 0:
            print(f"{name} failed")
            return rc

    print("All checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
