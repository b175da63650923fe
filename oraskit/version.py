"""Version information and the ``version`` command."""

from __future__ import annotations

import argparse
import platform

VERSION = "1.0.0"
BUILD_METADATA = "unreleased"
GIT_COMMIT = ""
GIT_TREE_STATE = ""


def get_version() -> str:
    """Return the semantic version string, with build metadata if any."""
    if not BUILD_METADATA:
        return VERSION
    return f"{VERSION}+{BUILD_METADATA}"


def version_items() -> list[tuple[str, str]]:
    """Return the labelled version facts in display order."""
    items = [
        ("Version", get_version()),
        ("Python version", platform.python_version()),
    ]
    if GIT_COMMIT:
        items.append(("Git commit", GIT_COMMIT))
    if GIT_TREE_STATE:
        items.append(("Git tree state", GIT_TREE_STATE))
    return items


def main(argv: list[str] | None = None) -> int:
    """Print the version information with values aligned in one column."""
    parser = argparse.ArgumentParser(
        prog="oras version", description="Show the oras version information"
    )
    parser.parse_args(argv)
    items = version_items()
    width = max(len(label) for label, _ in items)
    for label, value in items:
        print(f"{label}: {' ' * (width - len(label))}{value}")
    return 0