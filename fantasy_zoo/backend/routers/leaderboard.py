"""Leaderboard API endpoints"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from fantasy_zoo.backend.database import get_db, DatabaseConnection, execute_query
from fantasy_zoo.backend.models import LeaderboardEntry

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[dict])
async def get_leaderboard(
    limit: int = 100,
    offset: int = 0,
    db: DatabaseConnection = Depends(get_db)
):
    """
    Retrieve prestiged runs from every session.

    Sorted by score, then coins, then newest first.
    """
    if limit > 1000:
        limit = 1000
    if limit < 1:
        limit = 100
    if offset < 0:
        offset = 0

    cursor = execute_query(db, """
        SELECT * FROM leaderboard
        ORDER BY score DESC, coins DESC, created_at DESC
        LIMIT ? OFFSET ?
    """, (limit, offset))

    entries = []
    for row in cursor.fetchall():
        try:
            entries.append(LeaderboardEntry.from_row(row).to_dict())
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed leaderboard row: {e}")
    return entries


@router.get("/stats")
async def get_leaderboard_stats(db: DatabaseConnection = Depends(get_db)):
    """Aggregate numbers across the whole leaderboard"""
    cursor = execute_query(db, """
        SELECT COUNT(*) AS total_entries,
               MAX(score) AS best_score,
               MAX(max_coins) AS max_coins
        FROM leaderboard
    """)
    row = cursor.fetchone()

    return {
        "total_entries": int(row["total_entries"] or 0),
        "best_score": float(row["best_score"] or 0),
        "max_coins": float(row["max_coins"] or 0),
    }
