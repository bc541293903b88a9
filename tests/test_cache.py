"""Tests for the activation cache."""

import json
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from module_logger.cache import ModuleCache
from module_logger.errors import CacheCorruptError, StorageIOError
from module_logger.models import ModuleActivation


T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    return T0 + timedelta(seconds=seconds)


def test_load_missing_file_is_empty(tmp_path: Path):
    cache = ModuleCache(tmp_path / "cache.json").load()

    assert cache.activations == []
    assert not (tmp_path / "cache.json").exists()


def test_load_empty_file_is_empty(tmp_path: Path):
    path = tmp_path / "cache.json"
    path.write_text("")

    assert ModuleCache(path).load().activations == []


def test_load_null_is_empty(tmp_path: Path):
    path = tmp_path / "cache.json"
    path.write_text("null")

    assert ModuleCache(path).load().activations == []


@pytest.mark.parametrize("content", [
    "{not json",
    '{"username": "a"}',
    '[{"username": "a"}]',
])
def test_load_malformed_file_raises(tmp_path: Path, content: str):
    path = tmp_path / "cache.json"
    path.write_text(content)
    cache = ModuleCache(path)

    with pytest.raises(CacheCorruptError):
        cache.load()
    assert cache.activations == []


def test_load_directory_raises_io_error(tmp_path: Path):
    with pytest.raises(StorageIOError):
        ModuleCache(tmp_path).load()


def test_save_then_load_round_trip(tmp_path: Path):
    path = tmp_path / "cache.json"
    c1 = ModuleCache(path).load()
    c1.add(ModuleActivation.create("testuser1", "testpackage1", "testversion1", 100, "/m/1", now=T0))
    c1.add(ModuleActivation.create("testuser2", "testpackage2", "testversion2", 50, now=at(5)))
    c1.save()

    c2 = ModuleCache(path).load()

    assert len(c2) == 2
    assert c2.activations == c1.activations


def test_save_overwrites_previous_state(tmp_path: Path):
    path = tmp_path / "cache.json"
    cache = ModuleCache(path)
    cache.add(ModuleActivation.create("a", "b", "c", 100, now=T0))
    cache.save()

    cache.activations = []
    cache.save()

    assert json.loads(path.read_text()) == []
    assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]


def test_save_is_owner_only(tmp_path: Path):
    path = tmp_path / "cache.json"
    ModuleCache(path).save()

    assert os.stat(path).st_mode & 0o777 == 0o600


def test_save_into_missing_directory_raises(tmp_path: Path):
    cache = ModuleCache(tmp_path / "missing" / "cache.json")

    with pytest.raises(StorageIOError):
        cache.save()


def test_ready_to_write_scenarios():
    cache = ModuleCache(Path("unused.json"))
    active = ModuleActivation.create("testuser1", "testpackage1", "testversion1", 100, now=T0)
    stale = ModuleActivation.create("test2", "package2", "version2", -1, now=T0)
    cache.add(active)
    cache.add(stale)

    unique = ModuleActivation.create("super", "unique", "yeah", 5, now=at(1))
    inside = ModuleActivation.create("testuser1", "testpackage1", "testversion1", 100, now=at(50))
    after = ModuleActivation.create("testuser1", "testpackage1", "testversion1", 100, now=at(150))
    stale_again = ModuleActivation.create("test2", "package2", "version2", 100, now=T0)
    other_version = ModuleActivation.create("testuser1", "testpackage1", "testversion2", 100, now=at(50))

    assert cache.ready_to_write(unique)
    assert not cache.ready_to_write(inside)
    assert cache.ready_to_write(after)
    assert cache.ready_to_write(stale_again)
    assert cache.ready_to_write(other_version)


def test_ready_to_write_at_expiration_is_allowed():
    cache = ModuleCache(Path("unused.json"))
    cache.add(ModuleActivation.create("a", "b", "c", 100, now=T0))

    assert cache.ready_to_write(ModuleActivation.create("a", "b", "c", 100, now=at(100)))
    assert not cache.ready_to_write(ModuleActivation.create("a", "b", "c", 100, now=at(99)))


def test_ready_to_write_checks_every_matching_record():
    cache = ModuleCache(Path("unused.json"))
    cache.add(ModuleActivation.create("a", "b", "c", 10, now=T0))
    cache.add(ModuleActivation.create("a", "b", "c", 100, now=at(5)))

    assert not cache.ready_to_write(ModuleActivation.create("a", "b", "c", 10, now=at(50)))


def test_add_keeps_duplicates():
    cache = ModuleCache(Path("unused.json"))
    activation = ModuleActivation.create("a", "b", "c", 100, now=T0)
    cache.add(activation)
    cache.add(activation)

    assert len(cache) == 2


def test_clean_removes_only_expired():
    cache = ModuleCache(Path("unused.json"))
    keep = ModuleActivation.create("testuser1", "testpackage1", "testversion1", 100, now=T0)
    drop = ModuleActivation.create("test2", "package2", "version2", -1, now=T0)
    cache.add(drop)
    cache.add(keep)
    assert len(cache) == 2

    removed = cache.clean(T0)

    assert removed == 1
    assert cache.activations == [keep]


def test_clean_boundary_and_order():
    cache = ModuleCache(Path("unused.json"))
    first = ModuleActivation.create("a", "p", "1", 30, now=T0)
    boundary = ModuleActivation.create("b", "p", "1", 10, now=T0)
    last = ModuleActivation.create("c", "p", "1", 20, now=T0)
    for activation in (first, boundary, last):
        cache.add(activation)

    cache.clean(at(10))

    assert cache.activations == [first, last]
    assert all(a.expiration > at(10) for a in cache.activations)


def test_clean_defaults_to_now():
    cache = ModuleCache(Path("unused.json"))
    cache.add(ModuleActivation.create("a", "b", "c", -1))
    cache.add(ModuleActivation.create("a", "b", "d", 3600))

    cache.clean()

    assert [a.package_version for a in cache.activations] == ["d"]


def test_load_undecodable_bytes_is_corrupt(tmp_path: Path):
    path = tmp_path / "cache.json"
    path.write_bytes(b"\xff\xfe\x00garbage")
    cache = ModuleCache(path)

    with pytest.raises(CacheCorruptError):
        cache.load()
    assert cache.activations == []


def test_save_keeps_existing_file_mode(tmp_path: Path):
    path = tmp_path / "cache.json"
    path.write_text("[]")
    os.chmod(path, 0o666)

    cache = ModuleCache(path).load()
    cache.add(ModuleActivation.create("a", "b", "c", 100, now=T0))
    cache.save()

    assert os.stat(path).st_mode & 0o777 == 0o666
    assert len(ModuleCache(path).load()) == 1


def test_failed_save_leaves_previous_file(tmp_path: Path, monkeypatch):
    path = tmp_path / "cache.json"
    cache = ModuleCache(path)
    cache.add(ModuleActivation.create("a", "b", "c", 100, now=T0))
    cache.save()
    before = path.read_text()

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", failing_replace)
    cache.add(ModuleActivation.create("d", "e", "f", 100, now=T0))

    with pytest.raises(StorageIOError):
        cache.save()

    assert path.read_text() == before
    assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]
