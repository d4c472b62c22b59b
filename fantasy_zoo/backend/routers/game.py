"""
Game API endpoints - per-session zoo state and player actions.

Every request loads the session's zoo, catches the simulation up to the
current time, applies the action and saves the result.
"""
import json
import logging
import os
import time
import uuid
from typing import Optional, Dict, Callable

from fastapi import APIRouter, Depends, HTTPException, Cookie, Body
from fastapi.responses import JSONResponse

from fantasy_zoo.backend.database import get_db, DatabaseConnection, execute_query
from fantasy_zoo.backend.models import LeaderboardEntry, PrestigeRequest
from fantasy_zoo.core.config import GameConfig, default_config
from fantasy_zoo.core.models import ActionResult, RunSummary
from fantasy_zoo.core.state_manager import state_to_save_dict, state_from_save_dict
from fantasy_zoo.game.engine import ZooEngine, new_game_state, now_ms
from fantasy_zoo.game.state import GameState

router = APIRouter(prefix="/api/game", tags=["game"])
logger = logging.getLogger(__name__)

IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

# Session expiration time (24 hours)
SESSION_EXPIRY = 24 * 60 * 60

# Requests per minute
RATE_LIMITS = {
    "get_state": 120,
    "buy_egg": 30,
    "care": 60,
    "habitat": 30,
    "sell": 30,
    "prestige": 5,
    "restart": 5,
}

_rate_limit_store: Dict[str, Dict[str, list[float]]] = {}


def set_session_cookie(response: JSONResponse, session_id: str, cookie_name: str = "session_id"):
    """Set the session cookie with consistent settings"""
    response.set_cookie(
        key=cookie_name,
        value=session_id,
        httponly=True,
        samesite="lax",
        secure=IS_PRODUCTION,  # HTTPS only in production
        max_age=SESSION_EXPIRY,
        path="/"
    )


def check_rate_limit(session_id: str, endpoint: str, limit: int) -> tuple[bool, Optional[int]]:
    """
    Check if session is within rate limit for endpoint.
    Returns (is_allowed, retry_after_seconds).
    """
    now = time.time()
    window = 60

    timestamps = _rate_limit_store.setdefault(session_id, {}).setdefault(endpoint, [])
    timestamps[:] = [t for t in timestamps if now - t < window]

    if len(timestamps) >= limit:
        retry_after = int(window - (now - timestamps[0])) + 1
        logger.warning(f"Rate limit exceeded for session {session_id[:8]}... on {endpoint}")
        return False, retry_after

    timestamps.append(now)
    return True, None


def enforce_rate_limit(session_id: str, endpoint: str):
    """Enforce rate limit, raise HTTPException if exceeded."""
    limit = RATE_LIMITS.get(endpoint, 60)
    allowed, retry_after = check_rate_limit(session_id, endpoint, limit)

    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)}
        )


def get_session_id(session_id: Optional[str] = None) -> str:
    """Use the cookie's session id, or mint a new one"""
    if not session_id:
        session_id = str(uuid.uuid4())
        logger.debug(f"New session created: {session_id[:8]}...")
    return session_id


def get_clock() -> Callable[[], int]:
    """Millisecond clock used by the engine (overridden in tests)"""
    return now_ms


def get_zoo_config() -> GameConfig:
    """Simulation tunables for API-driven zoos (overridden in tests)"""
    return default_config()


def load_zoo(db: DatabaseConnection, session_id: str, config: GameConfig, now: int) -> GameState:
    """Load the session's zoo, or start a fresh run if it has none"""
    cursor = execute_query(db, "SELECT state_data FROM game_states WHERE session_id = ?", (session_id,))
    row = cursor.fetchone()
    if row is None:
        logger.info(f"Starting new zoo for session {session_id[:8]}...")
        return new_game_state(config, now)

    try:
        return state_from_save_dict(json.loads(row["state_data"]))
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Corrupt zoo state for session {session_id[:8]}...: {e}")
        raise HTTPException(status_code=500, detail="Saved zoo could not be loaded")


def save_zoo(db: DatabaseConnection, session_id: str, state: GameState):
    """Upsert the session's zoo"""
    data = state_to_save_dict(state)
    execute_query(db, """
        INSERT INTO game_states (session_id, state_data, version, created_at, updated_at)
        VALUES (?, ?, ?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
        ON CONFLICT (session_id) DO UPDATE SET
            state_data = excluded.state_data,
            version = excluded.version,
            updated_at = CURRENT_TIMESTAMP
    """, (session_id, json.dumps(data), data["version"]))
    db.commit()


def open_engine(db: DatabaseConnection, sid: str, config: GameConfig,
                clock: Callable[[], int]) -> ZooEngine:
    """Load the zoo and run every step that came due since the last request"""
    now = clock()
    engine = ZooEngine(state=load_zoo(db, sid, config, now), config=config, clock=clock)
    steps = engine.advance_to(now)
    if steps:
        logger.debug(f"Caught up {steps} steps for session {sid[:8]}...")
    return engine


def respond(engine: ZooEngine, sid: str, result: Optional[ActionResult] = None) -> JSONResponse:
    content = {"state": engine.snapshot()}
    if result is not None:
        content.update(result.to_dict())
    response = JSONResponse(content=content)
    set_session_cookie(response, sid)
    return response


def run_action(
    db: DatabaseConnection,
    session_id: Optional[str],
    config: GameConfig,
    clock: Callable[[], int],
    endpoint: str,
    action: Callable[[ZooEngine], ActionResult],
):
    """
    Shared body of every action endpoint.

    The caught-up state is saved even when the action is rejected, so the
    steps that ran are not replayed on the next request. A session minted by
    this request whose action fails is not saved: the error response carries
    no cookie, so nobody could ever load it.
    """
    is_new_session = not session_id
    sid = get_session_id(session_id)
    enforce_rate_limit(sid, endpoint)

    engine = open_engine(db, sid, config, clock)
    result = action(engine)
    if result or not is_new_session:
        save_zoo(db, sid, engine.state)

    if not result:
        logger.info(f"Action {endpoint} rejected for session {sid[:8]}...: {result.reason}")
        raise HTTPException(status_code=400, detail=result.reason)
    return engine, sid, result


@router.get("/state")
async def get_game_state(
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """Current zoo state, caught up to now. Rate limit: 120 requests/minute"""
    sid = get_session_id(session_id)
    enforce_rate_limit(sid, "get_state")
    engine = open_engine(db, sid, config, clock)
    save_zoo(db, sid, engine.state)
    return respond(engine, sid)


@router.post("/eggs/{egg_type}")
async def buy_egg_endpoint(
    egg_type: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """Buy an egg and start incubating it"""
    engine, sid, result = run_action(
        db, session_id, config, clock, "buy_egg",
        lambda engine: engine.buy_egg(egg_type.strip().lower()),
    )
    return respond(engine, sid, result)


@router.post("/animals/{animal_id}/feed")
async def feed_endpoint(
    animal_id: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    engine, sid, result = run_action(db, session_id, config, clock, "care",
                                     lambda engine: engine.feed(animal_id))
    return respond(engine, sid, result)


@router.post("/animals/{animal_id}/bath")
async def bath_endpoint(
    animal_id: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """Queue an animal at the Bath House (cost is charged up front)"""
    engine, sid, result = run_action(db, session_id, config, clock, "care",
                                     lambda engine: engine.clean(animal_id))
    return respond(engine, sid, result)


@router.delete("/animals/{animal_id}/bath")
async def cancel_bath_endpoint(
    animal_id: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    engine, sid, result = run_action(db, session_id, config, clock, "care",
                                     lambda engine: engine.cancel_bath(animal_id))
    return respond(engine, sid, result)


@router.post("/animals/{animal_id}/clinic")
async def clinic_endpoint(
    animal_id: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """Queue a sick animal at the Clinic"""
    engine, sid, result = run_action(db, session_id, config, clock, "care",
                                     lambda engine: engine.send_to_clinic(animal_id))
    return respond(engine, sid, result)


@router.delete("/animals/{animal_id}/clinic")
async def cancel_clinic_endpoint(
    animal_id: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    engine, sid, result = run_action(db, session_id, config, clock, "care",
                                     lambda engine: engine.cancel_clinic(animal_id))
    return respond(engine, sid, result)


@router.post("/animals/{animal_id}/sell")
async def sell_endpoint(
    animal_id: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    engine, sid, result = run_action(db, session_id, config, clock, "sell",
                                     lambda engine: engine.sell(animal_id))
    return respond(engine, sid, result)


@router.post("/animals/{animal_id}/habitat/{habitat_key}")
async def assign_habitat_endpoint(
    animal_id: str,
    habitat_key: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """Move an animal into a habitat"""
    engine, sid, result = run_action(
        db, session_id, config, clock, "habitat",
        lambda engine: engine.assign_habitat(animal_id, habitat_key.strip().lower()),
    )
    return respond(engine, sid, result)


@router.post("/habitats/{habitat_key}/upgrade")
async def upgrade_habitat_endpoint(
    habitat_key: str,
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    engine, sid, result = run_action(
        db, session_id, config, clock, "habitat",
        lambda engine: engine.upgrade_habitat(habitat_key.strip().lower()),
    )
    return respond(engine, sid, result)


@router.post("/prestige")
async def prestige_endpoint(
    request_body: Optional[PrestigeRequest] = Body(None),
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """
    Prestige the current run.

    On success the run summary is also published to the shared leaderboard
    under `player_name`. Rate limit: 5 requests/minute
    """
    request_body = request_body or PrestigeRequest()
    is_valid, error_msg = request_body.validate()
    if not is_valid:
        raise HTTPException(status_code=400, detail=error_msg)

    engine, sid, result = run_action(db, session_id, config, clock, "prestige",
                                     lambda engine: engine.prestige())

    summary = RunSummary.from_dict(result.data["summary"], clock())
    entry = LeaderboardEntry.from_summary(summary, request_body.player_name.strip(), sid)
    execute_query(db, """
        INSERT INTO leaderboard (id, session_id, player_name, coins, max_coins, pets_hatched,
                                 highest_rarity, prestiges_before, prestiges_after,
                                 time_played_ms, score, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, (
        entry.id, entry.session_id, entry.player_name, entry.coins, entry.max_coins,
        entry.pets_hatched, entry.highest_rarity, entry.prestiges_before,
        entry.prestiges_after, entry.time_played_ms, entry.score, entry.created_at.isoformat(),
    ))
    db.commit()
    logger.info(f"Leaderboard entry {entry.id[:8]}... recorded with score {entry.score:.1f}")

    result.data["leaderboard_entry"] = entry.to_dict()
    return respond(engine, sid, result)


@router.post("/restart")
async def restart_endpoint(
    db: DatabaseConnection = Depends(get_db),
    config: GameConfig = Depends(get_zoo_config),
    clock: Callable[[], int] = Depends(get_clock),
    session_id: Optional[str] = Cookie(None)
):
    """Start a fresh run; permanent prestige progress is kept"""
    engine, sid, result = run_action(db, session_id, config, clock, "restart",
                                     lambda engine: engine.restart())
    return respond(engine, sid, result)
