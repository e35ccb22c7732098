import random
from collections import defaultdict
from typing import Dict, List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models.question import Question, Choice
from models.group import QuestionGroup
from models.attempt import Attempt
from models.settings import QuizSettings
from services.settings_service import SettingsService
from core.exceptions import ValidationError, NoQuestionsAvailable
from core.config import settings
from core.logger import logger

PLAYER_NAME_MAX_LENGTH = 100


def clean_ids(ids: Optional[Sequence[str]]) -> List[str]:
    """Strip ids, drop blanks and duplicates, keep first-seen order."""
    seen = []
    for raw in ids or []:
        value = str(raw).strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def sanitize_choices(choices: Sequence[Choice], rng: random.Random, shuffle: bool = True) -> List[Dict]:
    """
    Build the quiz-taker view of a question's choices.

    Only ``id`` and ``label`` are emitted; ``is_correct`` must never leave the
    server while a quiz is being taken. Order is independently shuffled per
    question when ``shuffle`` is on.
    """
    ordered = list(choices)
    if shuffle:
        rng.shuffle(ordered)
    return [{"id": c.id, "label": c.label} for c in ordered]


class QuizService:
    def __init__(self, db: AsyncSession, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng or random.Random()

    async def select_questions(self, quiz_settings: QuizSettings, group_ids: Optional[Sequence[str]] = None) -> List[Question]:
        """
        Pick the questions for a new quiz run.

        With group filters the candidate pool is every question linked to any
        of the groups; otherwise it is the whole bank. Random mode draws a
        uniform permutation, sequential mode keeps creation order. The result
        is truncated to ``num_questions``.
        """
        group_ids = clean_ids(group_ids)

        stmt = select(Question)
        if group_ids:
            linked = select(QuestionGroup.question_id).filter(QuestionGroup.group_id.in_(group_ids))
            stmt = stmt.filter(Question.id.in_(linked))
        stmt = stmt.order_by(Question.created_at.asc(), Question.id.asc())

        result = await self.db.execute(stmt)
        candidates = list(result.scalars().all())
        if not candidates:
            logger.info("No questions available for quiz", group_ids=group_ids)
            raise NoQuestionsAvailable()

        if quiz_settings.randomize:
            self.rng.shuffle(candidates)

        return candidates[:min(quiz_settings.num_questions, len(candidates))]

    async def get_choices_by_question(self, question_ids: Sequence[str]) -> Dict[str, List[Choice]]:
        by_question: Dict[str, List[Choice]] = defaultdict(list)
        if not question_ids:
            return by_question
        result = await self.db.execute(
            select(Choice).filter(Choice.question_id.in_(list(question_ids))).order_by(Choice.label, Choice.id)
        )
        for choice in result.scalars().all():
            by_question[choice.question_id].append(choice)
        return by_question

    async def start_attempt(self, player_name: str, group_ids: Optional[Sequence[str]] = None) -> Dict:
        """Assemble a quiz, persist the attempt and return the sanitized payload."""
        name = (player_name or "").strip()
        if not name:
            raise ValidationError("player_name is required")
        if len(name) > PLAYER_NAME_MAX_LENGTH:
            raise ValidationError(f"player_name must be at most {PLAYER_NAME_MAX_LENGTH} characters")

        quiz_settings = await SettingsService(self.db).get_settings()
        picked = await self.select_questions(quiz_settings, group_ids)
        picked_ids = [q.id for q in picked]

        choices = await self.get_choices_by_question(picked_ids)
        questions = [
            {
                "id": q.id,
                "prompt": q.prompt,
                "choices": sanitize_choices(choices.get(q.id, []), self.rng, shuffle=settings.SHUFFLE_CHOICES),
            }
            for q in picked
        ]

        attempt = Attempt(
            player_name=name,
            score=0,
            total=len(questions),
            question_ids=picked_ids,
        )
        self.db.add(attempt)
        await self.db.commit()
        await self.db.refresh(attempt)
        logger.info(
            "Attempt started",
            attempt_id=attempt.id,
            total=attempt.total,
            randomize=quiz_settings.randomize,
            group_ids=clean_ids(group_ids),
        )

        return {
            "attempt_id": attempt.id,
            "total": attempt.total,
            "questions": questions,
        }
