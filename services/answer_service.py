from typing import Dict, Iterable, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from models.question import Question, Choice
from models.attempt import Attempt, AttemptAnswer
from core.exceptions import ValidationError, NotFound, Conflict
from core.logger import logger


def exact_set_match(correct_ids: Iterable[str], selected_ids: Iterable[str]) -> bool:
    """
    Exact-set grading: the selection must contain every correct choice and
    nothing else. A question with no correct choice can never be answered
    correctly.
    """
    correct = set(correct_ids)
    selected = set(selected_ids)
    return bool(correct) and correct == selected


class AnswerService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def answer_exists(self, attempt_id: str, question_id: str) -> bool:
        result = await self.db.execute(
            select(AttemptAnswer.id).filter(
                AttemptAnswer.attempt_id == attempt_id,
                AttemptAnswer.question_id == question_id,
            )
        )
        return result.first() is not None

    async def question_exists(self, question_id: str) -> bool:
        result = await self.db.execute(select(Question.id).filter(Question.id == question_id))
        return result.first() is not None

    async def submit_answer(self, attempt_id: str, question_id: str, selected_choice_ids: Sequence[str]) -> Dict:
        """
        Grade one answer of an attempt and return ``{"correct", "score"}``.

        Each (attempt, question) pair is graded at most once. The answer insert
        and the score increment share one transaction, and the unique
        constraint on the pair decides which of two concurrent submissions
        wins.
        """
        attempt_id = (attempt_id or "").strip()
        question_id = (question_id or "").strip()
        if not attempt_id or not question_id:
            raise ValidationError("attempt_id and question_id are required")

        selected = sorted({str(c).strip() for c in selected_choice_ids or [] if str(c).strip()})
        if not selected:
            raise ValidationError("selected_choice_ids must be a non-empty array")

        result = await self.db.execute(select(Attempt).filter(Attempt.id == attempt_id))
        attempt = result.scalar_one_or_none()
        if not attempt:
            raise NotFound("Attempt not found")
        if question_id not in (attempt.question_ids or []):
            raise ValidationError("Question is not part of this attempt")
        if not await self.question_exists(question_id):
            # Served, then deleted by an admin
            raise NotFound("Question not found")

        if await self.answer_exists(attempt_id, question_id):
            logger.info("Duplicate answer rejected", attempt_id=attempt_id, question_id=question_id)
            raise Conflict("Question already answered for this attempt")

        result = await self.db.execute(
            select(Choice.id).filter(Choice.question_id == question_id, Choice.is_correct == True)
        )
        correct_ids = set(result.scalars().all())
        if not correct_ids:
            logger.warning("Question has no correct choice configured", question_id=question_id)
        is_correct = exact_set_match(correct_ids, selected)

        self.db.add(AttemptAnswer(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_choice_ids=selected,
            is_correct=is_correct,
        ))
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            if not await self.question_exists(question_id):
                logger.info("Answer rejected, question deleted", attempt_id=attempt_id, question_id=question_id)
                raise NotFound("Question not found")
            # Lost the race against a concurrent submission for the same pair
            logger.info("Duplicate answer rejected on insert", attempt_id=attempt_id, question_id=question_id)
            raise Conflict("Question already answered for this attempt")

        if is_correct:
            result = await self.db.execute(
                update(Attempt)
                .where(Attempt.id == attempt_id)
                .values(score=Attempt.score + 1)
                .returning(Attempt.score)
            )
        else:
            result = await self.db.execute(select(Attempt.score).filter(Attempt.id == attempt_id))
        score = int(result.scalar_one())

        await self.db.commit()
        logger.info(
            "Answer graded",
            attempt_id=attempt_id,
            question_id=question_id,
            correct=is_correct,
            score=score,
        )
        return {"correct": is_correct, "score": score}
