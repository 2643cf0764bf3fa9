# squares_backend/core/registry.py
from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional, Set
import json, logging

from .errors import PoolNotFound
from .models import Pool

log = logging.getLogger(__name__)


class PoolRegistry:
    """
    In-memory pool collection. Every change swaps a whole Pool in, so a
    reader never sees a half-applied update. With `path` set, each change
    is also written to a JSON snapshot.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._pools: Dict[str, Pool] = {}

    def all(self) -> List[Pool]:
        return list(self._pools.values())

    def get(self, pool_id: str) -> Pool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFound(pool_id)
        return pool

    def add(self, pool: Pool) -> Pool:
        self._pools[pool.id] = pool
        self._persist()
        return pool

    def update(self, pool: Pool) -> Pool:
        self.get(pool.id)
        self._pools[pool.id] = pool
        self._persist()
        return pool

    def delete(self, pool_id: str) -> None:
        self.get(pool_id)
        del self._pools[pool_id]
        self._persist()

    def linked_game_ids(self) -> Set[str]:
        return {p.game_id for p in self._pools.values() if p.game_id}

    # ---- snapshot ----

    def _persist(self) -> None:
        if self.path is not None:
            self.save()

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        payload = {"pools": [p.to_dict() for p in self._pools.values()]}
        tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)

    def load(self) -> int:
        if self.path is None or not self.path.exists():
            return 0
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            pools = [Pool.from_dict(d) for d in raw.get("pools", [])]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("pool snapshot unreadable path=%s error=%r; starting empty", self.path, e)
            return 0
        self._pools = {p.id: p for p in pools}
        log.info("loaded pools=%d from %s", len(pools), self.path)
        return len(pools)
