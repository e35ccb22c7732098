from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from models.attempt import Attempt
from core.config import settings

LEADERBOARD_MIN_LIMIT = 1
LEADERBOARD_MAX_LIMIT = 100

class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[dict]:
        """
        Top attempts by score. Ties go to whoever started earlier.
        ``limit`` is clamped to 1..100.
        """
        if limit is None:
            limit = settings.LEADERBOARD_DEFAULT_LIMIT
        limit = max(LEADERBOARD_MIN_LIMIT, min(LEADERBOARD_MAX_LIMIT, int(limit)))

        query = (
            select(Attempt)
            .order_by(desc(Attempt.score), Attempt.created_at.asc(), Attempt.id.asc())
            .limit(limit)
        )
        result = await self.db.execute(query)

        return [{
            "id": a.id,
            "player_name": a.player_name,
            "score": a.score,
            "total": a.total,
            "created_at": a.created_at,
        } for a in result.scalars().all()]
