from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from models.settings import QuizSettings, SETTINGS_ROW_ID, MIN_NUM_QUESTIONS, MAX_NUM_QUESTIONS
from core.exceptions import ValidationError
from core.config import settings
from core.logger import logger

class SettingsService:
    """Reads and writes the singleton quiz configuration row."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fetch(self) -> Optional[QuizSettings]:
        result = await self.db.execute(select(QuizSettings).filter(QuizSettings.id == SETTINGS_ROW_ID))
        return result.scalar_one_or_none()

    async def get_settings(self) -> QuizSettings:
        """
        Return the quiz settings, creating the row with defaults on first use.
        Always read fresh from the store; nothing is cached between requests.
        """
        row = await self._fetch()
        if row:
            return row

        row = QuizSettings(
            id=SETTINGS_ROW_ID,
            num_questions=settings.DEFAULT_NUM_QUESTIONS,
            randomize=settings.DEFAULT_RANDOMIZE,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            # Another request created the row first
            await self.db.rollback()
            return await self._fetch()

        await self.db.refresh(row)
        logger.info("Default quiz settings created", num_questions=row.num_questions, randomize=row.randomize)
        return row

    async def update_settings(self, num_questions: Optional[int] = None, randomize: Optional[bool] = None) -> QuizSettings:
        if num_questions is not None:
            if isinstance(num_questions, bool) or not isinstance(num_questions, int) \
                    or not MIN_NUM_QUESTIONS <= num_questions <= MAX_NUM_QUESTIONS:
                raise ValidationError(
                    f"num_questions must be an integer between {MIN_NUM_QUESTIONS} and {MAX_NUM_QUESTIONS}"
                )

        row = await self.get_settings()
        if num_questions is not None:
            row.num_questions = num_questions
        if randomize is not None:
            row.randomize = bool(randomize)

        await self.db.commit()
        await self.db.refresh(row)
        logger.info("Quiz settings updated", num_questions=row.num_questions, randomize=row.randomize)
        return row
