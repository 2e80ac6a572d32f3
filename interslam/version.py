"""Release number and the revision it was built from."""

from __future__ import annotations

from typing import NamedTuple

VERSION_MAJOR = 1
VERSION_MINOR = 0
VERSION_REVISION = 0

LAST_COMMIT_HASH = "af641d6"
LAST_COMMIT_DATE = "Tue Oct 29 17:22:06 2019 +0900"


class VersionInfo(NamedTuple):
    major: int
    minor: int
    revision: int
    commit_hash: str
    commit_date: str


def version_info() -> VersionInfo:
    """Version numbers together with the last commit's hash and date."""
    return VersionInfo(VERSION_MAJOR, VERSION_MINOR, VERSION_REVISION, LAST_COMMIT_HASH, LAST_COMMIT_DATE)


def version_string() -> str:
    """Dotted version number, e.g. ``1.0.0``."""
    info = version_info()
    return f"{info.major}.{info.minor}.{info.revision}"