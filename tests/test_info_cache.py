import os
import threading
from pathlib import Path

import pytest

from image_inventory.image_engine.info_cache import InfoCache
from image_inventory.image_engine.inventory import ImageInfo
from image_inventory.image_engine.metrics import metrics


def _touch(path: Path, data: bytes = b"x") -> os.stat_result:
    path.write_bytes(data)
    return os.stat(path)


def _info(path: Path, width: int = 1) -> ImageInfo:
    return ImageInfo(path=str(path), name=path.name, width=width, height=1, size=1)


def test_put_then_get(tmp_path: Path):
    p = tmp_path / "a.png"
    st = _touch(p)
    cache = InfoCache()
    assert cache.get(str(p), st) is None
    cache.put(str(p), st, _info(p))
    assert cache.get(str(p), st) == _info(p)
    snap = metrics.snapshot()["counters"]
    assert snap["info_cache.miss"] == 1
    assert snap["info_cache.hit"] == 1


def test_relative_and_absolute_paths_share_key(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    p = tmp_path / "a.png"
    st = _touch(p)
    cache = InfoCache()
    cache.put("a.png", st, _info(p))
    assert cache.get(str(p), st) is not None


def test_stale_entry_dropped_when_size_changes(tmp_path: Path):
    p = tmp_path / "a.png"
    st = _touch(p, b"x")
    cache = InfoCache()
    cache.put(str(p), st, _info(p))
    st2 = _touch(p, b"xyz")
    assert cache.get(str(p), st2) is None
    assert len(cache) == 0
    assert metrics.counter("info_cache.stale") == 1


def test_lru_eviction(tmp_path: Path):
    cache = InfoCache(max_entries=2)
    paths = [tmp_path / f"{n}.png" for n in "abc"]
    stats = [_touch(p) for p in paths]
    cache.put(str(paths[0]), stats[0], _info(paths[0]))
    cache.put(str(paths[1]), stats[1], _info(paths[1]))
    # touch "a" so "b" becomes least recently used
    assert cache.get(str(paths[0]), stats[0]) is not None
    cache.put(str(paths[2]), stats[2], _info(paths[2]))
    assert len(cache) == 2
    assert cache.get(str(paths[1]), stats[1]) is None
    assert cache.get(str(paths[0]), stats[0]) is not None


def test_invalidate_and_clear(tmp_path: Path):
    p = tmp_path / "a.png"
    st = _touch(p)
    cache = InfoCache()
    cache.put(str(p), st, _info(p))
    cache.invalidate(str(p))
    assert len(cache) == 0
    cache.invalidate(str(p))
    cache.put(str(p), st, _info(p))
    cache.clear()
    assert len(cache) == 0


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        InfoCache(max_entries=0)


def test_concurrent_puts(tmp_path: Path):
    cache = InfoCache(max_entries=50)
    paths = [tmp_path / f"{i}.png" for i in range(200)]
    stats = [_touch(p) for p in paths]

    def worker(offset: int) -> None:
        for i in range(offset, len(paths), 4):
            cache.put(str(paths[i]), stats[i], _info(paths[i]))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(cache) == 50
