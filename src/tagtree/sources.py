# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tag sources - fetch the full tag collection a tree is built from.

Storage itself lives elsewhere. A source only has to hand back every tag
with its parent references resolved, in one unpaginated snapshot.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol

import yaml

from tagtree.tree.model import TagRecord

logger = logging.getLogger(__name__)

VALID_SOURCE_FORMATS = ("auto", "json", "yaml")

_SUFFIX_FORMATS = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


class TagSourceError(Exception):
    """Raised when a tag collection cannot be fetched or parsed."""

    pass


class TagSource(Protocol):
    """Protocol for tag collection providers."""

    def fetch_all(self) -> list[TagRecord]:
        """Return every tag with its parents, as a fresh snapshot."""
        ...


class StaticTagSource:
    """Serves a fixed, in-memory tag collection."""

    def __init__(self, tags: Iterable[TagRecord]):
        self._tags = tuple(tags)

    def fetch_all(self) -> list[TagRecord]:
        return list(self._tags)


class FileTagSource:
    """Reads tags from a JSON or YAML file on every fetch."""

    def __init__(self, path: Path, format: str = "auto"):
        if format not in VALID_SOURCE_FORMATS:
            raise TagSourceError(
                f"Invalid source format '{format}'. "
                f"Valid values: {', '.join(VALID_SOURCE_FORMATS)}"
            )
        self.path = Path(path)
        self.format = format

    def fetch_all(self) -> list[TagRecord]:
        return load_tags(self.path, format=self.format)


def detect_format(path: Path) -> str:
    """Map a file suffix to a source format."""
    fmt = _SUFFIX_FORMATS.get(path.suffix.lower())
    if fmt is None:
        raise TagSourceError(
            f"Cannot detect tag file format from '{path.name}'. "
            f"Use a .json, .yaml or .yml file or pass an explicit format."
        )
    return fmt


def parse_tags(data: Any) -> list[TagRecord]:
    """Turn decoded file content into TagRecords.

    Accepts either a bare list of records or a {"data": [...]} envelope.
    """
    if isinstance(data, dict) and "data" in data:
        data = data["data"]
    if data is None:
        return []
    if not isinstance(data, list):
        raise TagSourceError(
            f"Expected a list of tags, got {type(data).__name__}"
        )

    tags = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise TagSourceError(
                f"Tag at index {index} must be a mapping, got {type(item).__name__}"
            )
        try:
            tags.append(TagRecord.from_dict(item))
        except ValueError as e:
            raise TagSourceError(f"Invalid tag at index {index}: {e}")
    return tags


def load_tags(path: Path, format: str = "auto") -> list[TagRecord]:
    """Load a tag collection from a JSON or YAML file.

    Args:
        path: File to read
        format: "json", "yaml", or "auto" to detect from the suffix

    Returns:
        TagRecords in file order

    Raises:
        TagSourceError: If the file cannot be read, decoded or parsed
    """
    path = Path(path)
    if format not in VALID_SOURCE_FORMATS:
        raise TagSourceError(
            f"Invalid source format '{format}'. "
            f"Valid values: {', '.join(VALID_SOURCE_FORMATS)}"
        )
    if format == "auto":
        format = detect_format(path)

    try:
        content = path.read_text()
    except FileNotFoundError:
        raise TagSourceError(f"Tag file not found: {path}")
    except OSError as e:
        raise TagSourceError(f"Error reading {path}: {e}")

    if format == "json":
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise TagSourceError(f"Invalid JSON in {path}: {e}")
    else:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise TagSourceError(f"Invalid YAML in {path}: {e}")

    tags = parse_tags(data)
    logger.debug("Loaded %d tags from %s", len(tags), path)
    return tags
