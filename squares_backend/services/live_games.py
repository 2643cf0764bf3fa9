# squares_backend/services/live_games.py
from __future__ import annotations
from dataclasses import replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional
import asyncio, logging

from squares_backend.config import get_settings
from squares_backend.core.errors import FeedUnavailable
from squares_backend.core.models import Game
from squares_backend.core.registry import PoolRegistry
from squares_backend.services.espn_feed import fetch_games
from squares_backend.services.scores import derive_checkpoints, reconcile

log = logging.getLogger(__name__)

Fetcher = Callable[[], List[Game]]
UpdateHook = Callable[[Dict[str, Game]], None]


class LiveGameStore:
    """
    Owns the latest feed snapshot (game id -> Game) and the task that
    refreshes it. sync() starts polling when some pool links a game, stops
    it when none do, and restarts it when the linked set changes.
    """

    def __init__(
        self,
        fetch: Fetcher = fetch_games,
        interval_s: Optional[float] = None,
        on_update: Optional[UpdateHook] = None,
    ):
        self._fetch = fetch
        self.interval_s = get_settings().LIVE_POLL_INTERVAL_S if interval_s is None else interval_s
        self.on_update = on_update
        self._games: Dict[str, Game] = {}
        self._watched: FrozenSet[str] = frozenset()
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None

    @property
    def games(self) -> Dict[str, Game]:
        return dict(self._games)

    @property
    def watched(self) -> FrozenSet[str]:
        return self._watched

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def get(self, game_id: Optional[str]) -> Optional[Game]:
        return self._games.get(game_id) if game_id else None

    def sync(self, game_ids: Iterable[Optional[str]]) -> None:
        """Must be called from inside the event loop."""
        ids = frozenset(g for g in game_ids if g)
        if ids == self._watched and (self.running or not ids):
            return
        self._watched = ids
        self._cancel()
        if ids:
            log.info("live polling start games=%s interval_s=%s", sorted(ids), self.interval_s)
            self._task = asyncio.get_running_loop().create_task(self._run())
        else:
            log.info("live polling stopped; no linked games")

    async def poll_once(self) -> bool:
        try:
            games = await asyncio.to_thread(self._fetch)
        except FeedUnavailable as e:
            self.last_error = str(e)
            log.warning("live poll failed; keeping last snapshot (%d games): %s", len(self._games), e)
            return False
        self._games = {g.id: g for g in games}
        self.last_error = None
        if self.on_update is not None:
            self.on_update(dict(self._games))
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("live poll crashed; retrying next interval")
            await asyncio.sleep(self.interval_s)

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def stop(self) -> None:
        task = self._task
        self._watched = frozenset()
        self._cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass


def apply_snapshot(registry: PoolRegistry, games: Dict[str, Game]) -> int:
    """Reconcile every pool linked to a polled game. Returns how many changed."""
    changed = 0
    for pool in registry.all():
        game = games.get(pool.game_id) if pool.game_id else None
        if game is None:
            continue
        merged = reconcile(pool.scores, derive_checkpoints(game.linescores))
        if merged != pool.scores:
            registry.update(replace(pool, scores=merged))
            changed += 1
    if changed:
        log.info("live scores reconciled pools=%d", changed)
    return changed
