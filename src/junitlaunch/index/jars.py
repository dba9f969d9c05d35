"""Jar manifest reading."""

from __future__ import annotations

import zipfile
from pathlib import Path

from junitlaunch.core.logging import get_logger

log = get_logger("index.jars")

MANIFEST_NAME = "META-INF/MANIFEST.MF"


def parse_manifest(text: str) -> dict[str, str]:
    """Main-section attributes of a manifest.

    Lines starting with a single space continue the previous value; the main
    section ends at the first blank line.
    """
    attributes: dict[str, str] = {}
    current: str | None = None
    for raw in text.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        if not raw:
            if attributes:
                break
            continue
        if raw.startswith(" ") and current is not None:
            attributes[current] += raw[1:]
            continue
        name, sep, value = raw.partition(":")
        if not sep:
            continue
        current = name.strip()
        attributes[current] = value.strip()
    return attributes


def read_jar_manifest(path: Path) -> dict[str, str]:
    """Manifest attributes of a jar; empty when the jar or manifest is missing."""
    if not path.is_file():
        return {}
    try:
        with zipfile.ZipFile(path) as jar:
            try:
                data = jar.read(MANIFEST_NAME)
            except KeyError:
                return {}
    except zipfile.BadZipFile:
        log.warning("jar_unreadable", path=str(path))
        return {}
    return parse_manifest(data.decode("utf-8", errors="replace"))
