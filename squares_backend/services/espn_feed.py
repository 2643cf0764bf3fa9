# squares_backend/services/espn_feed.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import logging, re

import requests

from squares_backend.config import get_settings
from squares_backend.core.errors import FeedUnavailable
from squares_backend.core.models import Game, Linescores

"""
ESPN scoreboard adapter (pull mode)

GET {ESPN_BASE}/scoreboard[?dates=YYYYMMDD] and normalize each event into a
Game. Anything short of a readable 200 response is FeedUnavailable; the
caller treats that as "offline" and keeps its last known scores.
"""

log = logging.getLogger(__name__)

_DATE_RX = re.compile(r"^\d{8}$")

# --- parsing helpers ---------------------------------------------------------

def _to_int(v: Any, default: int = 0) -> int:
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return default

def _linescore_values(items: Any) -> Tuple[int, ...]:
    # stop at the first period without a value; later ones can't be trusted
    out: List[int] = []
    for it in items or []:
        v = it.get("value") if isinstance(it, dict) else None
        if v is None:
            break
        out.append(_to_int(v))
    return tuple(out)

def normalize_date(date: Optional[str]) -> Optional[str]:
    """'2026-02-08' or '20260208' -> '20260208'."""
    if not date:
        return None
    d = date.strip().replace("-", "")
    if not _DATE_RX.match(d):
        raise ValueError(f"date must be YYYY-MM-DD or YYYYMMDD, got {date!r}")
    return d

def parse_event(ev: Dict[str, Any]) -> Game:
    comp = (ev.get("competitions") or [{}])[0] or {}
    teams = sorted(comp.get("competitors") or [], key=lambda c: 1 if c.get("homeAway") == "home" else -1)
    away = teams[0] if len(teams) > 0 else {}
    home = teams[1] if len(teams) > 1 else {}
    away_team = away.get("team") or {}
    home_team = home.get("team") or {}
    status = comp.get("status") or {}

    return Game(
        id=str(ev.get("id", "")),
        name=ev.get("name") or f"{away_team.get('abbreviation')} vs {home_team.get('abbreviation')}",
        status=(status.get("type") or {}).get("description") or "Unknown",
        period=_to_int(status.get("period")),
        clock=status.get("displayClock") or "",
        away_team=away_team.get("displayName") or "Away",
        away_abbr=away_team.get("abbreviation") or "AWY",
        away_score=_to_int(away.get("score")),
        home_team=home_team.get("displayName") or "Home",
        home_abbr=home_team.get("abbreviation") or "HME",
        home_score=_to_int(home.get("score")),
        linescores=Linescores(
            away=_linescore_values(away.get("linescores")),
            home=_linescore_values(home.get("linescores")),
        ),
    )

# --- fetch -------------------------------------------------------------------

def fetch_games(date: Optional[str] = None, *, base: Optional[str] = None, timeout: Optional[float] = None) -> List[Game]:
    s = get_settings()
    url = f"{(base or s.ESPN_BASE).rstrip('/')}/scoreboard"
    d = normalize_date(date)
    params = {"dates": d} if d else None

    try:
        r = requests.get(url, params=params, timeout=timeout or s.FEED_HTTP_TIMEOUT_S)
    except requests.RequestException as e:
        log.warning("feed request failed url=%s error=%r", url, e)
        raise FeedUnavailable(f"Score feed unreachable: {e}") from e
    if r.status_code != 200:
        log.warning("feed bad status url=%s status=%s", url, r.status_code)
        raise FeedUnavailable(f"Score feed returned HTTP {r.status_code}")
    try:
        data = r.json()
    except ValueError as e:
        raise FeedUnavailable("Score feed returned invalid JSON") from e
    if not isinstance(data, dict):
        raise FeedUnavailable("Score feed returned an unexpected payload")

    events = data.get("events") or []
    try:
        games = [parse_event(ev) for ev in events if isinstance(ev, dict)]
    except (AttributeError, TypeError, IndexError) as e:
        log.warning("feed payload malformed url=%s error=%r", url, e)
        raise FeedUnavailable("Score feed returned an unexpected payload") from e
    log.info("feed fetched games=%d date=%s", len(games), d or "today")
    return games
