# tests/test_registry.py
from dataclasses import replace

import pytest

from squares_backend.core.errors import PoolNotFound
from squares_backend.core.models import AxisDigits, Pool
from squares_backend.core.registry import PoolRegistry


def test_snapshot_round_trip(tmp_path):
    path = tmp_path / "pools.json"
    reg = PoolRegistry(path)
    a = reg.add(Pool(name="A", game_id="401", col_numbers=AxisDigits.from_list([None] * 9 + [5])))
    reg.add(Pool(name="B"))
    assert path.exists()

    fresh = PoolRegistry(path)
    assert fresh.load() == 2
    assert fresh.get(a.id) == a
    assert fresh.linked_game_ids() == {"401"}


def test_every_change_is_persisted(tmp_path):
    path = tmp_path / "pools.json"
    reg = PoolRegistry(path)
    pool = reg.add(Pool(name="A"))
    reg.update(replace(pool, name="renamed"))
    assert PoolRegistry(path).load() == 1
    other = PoolRegistry(path)
    other.load()
    assert other.get(pool.id).name == "renamed"

    reg.delete(pool.id)
    assert PoolRegistry(path).load() == 0


def test_missing_or_corrupt_snapshot_loads_empty(tmp_path):
    assert PoolRegistry(tmp_path / "absent.json").load() == 0
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    reg = PoolRegistry(bad)
    assert reg.load() == 0
    assert reg.all() == []


def test_unknown_pool():
    reg = PoolRegistry()
    with pytest.raises(PoolNotFound) as ei:
        reg.get("nope")
    assert ei.value.pool_id == "nope"
    with pytest.raises(PoolNotFound):
        reg.update(Pool(id="nope"))
    with pytest.raises(PoolNotFound):
        reg.delete("nope")
