from __future__ import annotations

import asyncio

import pytest

from adapters.sqlite_config_store import SQLiteConfigStore
from core.errors import StorageError


def test_save_then_load_decodes_json(tmp_path) -> None:
    store = SQLiteConfigStore(str(tmp_path / "options.db"))
    store.init_db()

    rules = [{"name": "spiders", "keywords": ["spider"]}]
    assert asyncio.run(store.save({"blacklist": rules, "dryrun": False}))

    loaded = asyncio.run(store.load(["blacklist", "dryrun", "useWhitelist"]))
    assert loaded == {"blacklist": rules, "dryrun": False}


def test_save_overwrites_existing_value(tmp_path) -> None:
    store = SQLiteConfigStore(str(tmp_path / "options.db"))
    store.init_db()

    asyncio.run(store.save({"dryrun": True}))
    asyncio.run(store.save({"dryrun": False}))
    assert asyncio.run(store.load(["dryrun"])) == {"dryrun": False}


def test_seed_only_fills_missing_keys(tmp_path) -> None:
    store = SQLiteConfigStore(str(tmp_path / "options.db"))
    store.init_db()
    asyncio.run(store.save({"dryrun": False}))

    added = asyncio.run(store.seed({"dryrun": True, "useBlacklist": True}))

    assert added == 1
    assert asyncio.run(store.load(["dryrun", "useBlacklist"])) == {"dryrun": False, "useBlacklist": True}


def test_load_without_keys_is_empty(tmp_path) -> None:
    store = SQLiteConfigStore(str(tmp_path / "options.db"))
    store.init_db()
    assert asyncio.run(store.load([])) == {}


def test_unusable_path_raises_storage_error(tmp_path) -> None:
    store = SQLiteConfigStore(str(tmp_path))

    with pytest.raises(StorageError):
        store.init_db()


def test_unserializable_value_raises_storage_error(tmp_path) -> None:
    store = SQLiteConfigStore(str(tmp_path / "options.db"))
    store.init_db()

    with pytest.raises(StorageError):
        asyncio.run(store.save({"blacklist": object()}))
