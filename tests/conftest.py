"""Shared test helpers."""

from datetime import datetime

import pytest

from gitshelf.config.schema import GitConfig
from gitshelf.config.settings import reset_settings
from gitshelf.core.cache import LocalCacheStore
from gitshelf.core.catalog_engine import CatalogEngine
from gitshelf.core.models import FileRecord
from gitshelf.remote.memory import InMemoryObjectStore


FIXED_NOW = datetime(2024, 3, 1, 12, 30, 0)


def make_git_config(**overrides) -> GitConfig:
    data = {
        "owner": "alice",
        "repo": "pictures",
        "branch": "main",
        "token": "ghp_abcdefghijklmnop",
    }
    data.update(overrides)
    return GitConfig(**data)


def make_record(index: int, name: str = None) -> FileRecord:
    md5 = f"{index:02x}" + "0" * 30
    return FileRecord(
        file_name=name or f"image_{index}.png",
        file_md5=md5,
        file_size="1.00 KB",
        file_path=f"{md5[:2]}/{md5}.png",
        file_url="",
        create_at="2024-01-01 00:00:00"
    )


def make_engine(cache_file, store=None, git_config=None, **kwargs) -> CatalogEngine:
    config = git_config or make_git_config()
    if store is None:
        store = InMemoryObjectStore(config)
    return CatalogEngine(
        cache=LocalCacheStore(cache_file),
        store=store,
        git_config=config,
        clock=lambda: FIXED_NOW,
        **kwargs
    )


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings and env overrides from leaking between tests."""
    for name in ("GITSHELF_GIT_OWNER", "GITSHELF_GIT_REPO", "GITSHELF_GIT_BRANCH", "GITSHELF_GIT_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GITSHELF_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    yield
    reset_settings()
