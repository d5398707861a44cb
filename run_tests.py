#!/usr/bin/env python3
"""Test runner with different test suites."""
import sys
import shlex
import subprocess


def run_tests(test_type="all"):
    """Run tests based on type."""
    commands = {
        "unit": "pytest tests/unit -v",
        "integration": "pytest -m integration -v",
        "fast": "pytest -m 'not integration' -v",
        "all": "pytest -v",
        "coverage": "pytest --cov=redactlog --cov-report=html",
    }

    cmd = commands.get(test_type, commands["all"])
    return subprocess.call(shlex.split(cmd))


if __name__ == "__main__":
    test_type = sys.argv[1] if len(sys.argv) > 1 else "all"
    sys.exit(run_tests(test_type))
