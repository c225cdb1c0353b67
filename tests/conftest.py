"""Pytest configuration and shared fixtures for tagtree tests."""

import logging
from pathlib import Path

import pytest

from tagtree.tree.model import TagRecord

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Keep tests away from the real home directory, cwd and TAGTREE_* vars."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    for var in (
        "TAGTREE_OUTPUT_FORMAT",
        "TAGTREE_LOG_LEVEL",
        "TAGTREE_SOURCE",
        "TAGTREE_HOST",
        "TAGTREE_PORT",
        "TAGTREE_CORS_ORIGINS",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _restore_log_level():
    """The CLI sets the tagtree logger level; put it back after each test."""
    logger = logging.getLogger("tagtree")
    level = logger.level
    yield
    logger.setLevel(level)


def tag(id, name=None, parents=()):
    """Shorthand TagRecord constructor for tests."""
    return TagRecord(id=id, name=name or str(id), parents=tuple(parents))


@pytest.fixture
def diamond_tags():
    """A -> B, C -> D, with D under both B and C."""
    return [
        tag("A"),
        tag("B", parents=["A"]),
        tag("C", parents=["A"]),
        tag("D", parents=["B", "C"]),
    ]


@pytest.fixture
def json_tags_path():
    return FIXTURES / "tags.json"


@pytest.fixture
def yaml_tags_path():
    return FIXTURES / "tags.yaml"


@pytest.fixture
def tag_chain():
    """Factory for a single chain t0 <- t1 <- ... <- t(n-1)."""

    def _chain(length):
        return [tag(0, name="t0")] + [
            tag(i, name=f"t{i}", parents=[i - 1]) for i in range(1, length)
        ]

    return _chain
