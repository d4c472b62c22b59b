"""Data models for the Fantasy Zoo backend API"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import uuid

from fantasy_zoo.core.game_logic import compute_run_score
from fantasy_zoo.core.models import RunSummary


@dataclass
class LeaderboardEntry:
    """A prestiged run stored in the shared leaderboard"""
    id: str
    player_name: str
    coins: float
    max_coins: float
    pets_hatched: int
    highest_rarity: str
    prestiges_before: int
    prestiges_after: int
    time_played_ms: int
    score: float
    created_at: datetime
    session_id: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> 'LeaderboardEntry':
        """Create from database row (sqlite3.Row or dict)"""
        created_at = row['created_at']
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace('Z', '+00:00'))

        return cls(
            id=str(row['id']),
            session_id=row['session_id'],
            player_name=str(row['player_name']),
            coins=float(row['coins']),
            max_coins=float(row['max_coins']),
            pets_hatched=int(row['pets_hatched']),
            highest_rarity=str(row['highest_rarity']),
            prestiges_before=int(row['prestiges_before'] or 0),
            prestiges_after=int(row['prestiges_after'] or 0),
            time_played_ms=int(row['time_played_ms'] or 0),
            score=float(row['score']),
            created_at=created_at,
        )

    @classmethod
    def from_summary(cls, summary: RunSummary, player_name: str,
                     session_id: Optional[str] = None) -> 'LeaderboardEntry':
        return cls(
            id=str(uuid.uuid4()),
            session_id=session_id,
            player_name=player_name,
            coins=summary.coins,
            max_coins=summary.max_coins,
            pets_hatched=summary.pets_hatched,
            highest_rarity=summary.highest_rarity,
            prestiges_before=summary.prestiges_before,
            prestiges_after=summary.prestiges_after,
            time_played_ms=summary.time_played_ms,
            score=compute_run_score(summary),
            created_at=datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API response"""
        return {
            'id': self.id,
            'player_name': self.player_name,
            'coins': self.coins,
            'max_coins': self.max_coins,
            'pets_hatched': self.pets_hatched,
            'highest_rarity': self.highest_rarity,
            'prestiges_before': self.prestiges_before,
            'prestiges_after': self.prestiges_after,
            'time_played_ms': self.time_played_ms,
            'score': self.score,
            'created_at': self.created_at.isoformat(),
        }


@dataclass
class PrestigeRequest:
    """Optional body for POST /api/game/prestige"""
    player_name: str = "Zookeeper"

    def validate(self) -> tuple[bool, Optional[str]]:
        if not self.player_name or not self.player_name.strip():
            return False, "player_name cannot be empty"

        if len(self.player_name) > 100:
            return False, "player_name too long (max 100 characters)"

        return True, None
