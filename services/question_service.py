from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from models.question import Question, Choice, PROMPT_MAX_LENGTH, LABEL_MAX_LENGTH
from models.group import Group, QuestionGroup
from models.attempt import AttemptAnswer
from core.exceptions import ValidationError, NotFound, Conflict
from core.logger import logger


def clean_prompt(prompt) -> str:
    if not isinstance(prompt, str):
        raise ValidationError("prompt is required")
    text = prompt.strip()
    if not text:
        raise ValidationError("prompt cannot be empty")
    if len(text) > PROMPT_MAX_LENGTH:
        raise ValidationError(f"prompt must be at most {PROMPT_MAX_LENGTH} characters")
    return text


def clean_label(label) -> str:
    if not isinstance(label, str) or not label.strip():
        raise ValidationError("label is required")
    text = label.strip()
    if len(text) > LABEL_MAX_LENGTH:
        raise ValidationError(f"label must be at most {LABEL_MAX_LENGTH} characters")
    return text


class QuestionService:
    """Admin-side authoring of questions, their choices and their group links."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # === Questions ===

    async def list_questions(self) -> List[Tuple[Question, int, int]]:
        """Newest first, with choice and correct-choice counts so unconfigured questions stand out."""
        counts = (
            select(
                Choice.question_id,
                func.count(Choice.id).label("choice_count"),
                func.sum(case((Choice.is_correct == True, 1), else_=0)).label("correct_count"),
            )
            .group_by(Choice.question_id)
            .subquery()
        )
        result = await self.db.execute(
            select(
                Question,
                func.coalesce(counts.c.choice_count, 0),
                func.coalesce(counts.c.correct_count, 0),
            )
            .outerjoin(counts, counts.c.question_id == Question.id)
            .order_by(Question.created_at.desc(), Question.id.desc())
        )
        return [(q, int(n), int(c)) for q, n, c in result.all()]

    async def get_question(self, question_id: str) -> Question:
        result = await self.db.execute(
            select(Question).options(selectinload(Question.choices)).filter(Question.id == question_id)
        )
        question = result.scalar_one_or_none()
        if not question:
            raise NotFound("Question not found")
        return question

    async def create_question(self, prompt: str) -> Question:
        question = Question(prompt=clean_prompt(prompt))
        self.db.add(question)
        await self.db.commit()
        await self.db.refresh(question)
        logger.info("Question created", question_id=question.id)
        return question

    async def update_question(self, question_id: str, prompt: str) -> Question:
        text = clean_prompt(prompt)
        question = await self.get_question(question_id)
        if question.prompt == text:
            return question

        question.prompt = text
        await self.db.commit()
        await self.db.refresh(question)
        logger.info("Question updated", question_id=question_id)
        return question

    async def delete_question(self, question_id: str) -> None:
        """Delete a question with its choices and links. Answered questions are kept."""
        await self.get_question(question_id)

        result = await self.db.execute(
            select(func.count(AttemptAnswer.id)).filter(AttemptAnswer.question_id == question_id)
        )
        if result.scalar():
            raise Conflict("Question has recorded answers and cannot be deleted")

        # Delete related rows first to avoid foreign key constraints
        await self.db.execute(delete(Choice).where(Choice.question_id == question_id))
        await self.db.execute(delete(QuestionGroup).where(QuestionGroup.question_id == question_id))
        await self.db.execute(delete(Question).where(Question.id == question_id))
        await self.db.commit()
        logger.info("Question deleted", question_id=question_id)

    # === Choices ===

    async def list_choices(self, question_id: str) -> List[Choice]:
        await self.get_question(question_id)
        result = await self.db.execute(
            select(Choice).filter(Choice.question_id == question_id).order_by(Choice.label.asc(), Choice.id.asc())
        )
        return list(result.scalars().all())

    async def get_choice(self, choice_id: str) -> Choice:
        result = await self.db.execute(select(Choice).filter(Choice.id == choice_id))
        choice = result.scalar_one_or_none()
        if not choice:
            raise NotFound("Choice not found")
        return choice

    async def add_choice(self, question_id: str, label: str, is_correct: bool = False) -> Choice:
        text = clean_label(label)
        await self.get_question(question_id)

        choice = Choice(question_id=question_id, label=text, is_correct=bool(is_correct))
        self.db.add(choice)
        await self.db.commit()
        await self.db.refresh(choice)
        logger.info("Choice created", question_id=question_id, choice_id=choice.id)
        return choice

    async def update_choice(self, choice_id: str, label: Optional[str] = None, is_correct: Optional[bool] = None) -> Choice:
        if label is None and is_correct is None:
            raise ValidationError("Nothing to update")
        text = clean_label(label) if label is not None else None

        choice = await self.get_choice(choice_id)
        if text is not None:
            choice.label = text
        if is_correct is not None:
            choice.is_correct = bool(is_correct)

        await self.db.commit()
        await self.db.refresh(choice)
        logger.info("Choice updated", choice_id=choice_id, label_changed=text is not None, is_correct=choice.is_correct)
        return choice

    async def delete_choice(self, choice_id: str) -> None:
        await self.get_choice(choice_id)
        await self.db.execute(delete(Choice).where(Choice.id == choice_id))
        await self.db.commit()
        logger.info("Choice deleted", choice_id=choice_id)

    # === Group links ===

    async def list_question_groups(self, question_id: str) -> List[Group]:
        await self.get_question(question_id)
        result = await self.db.execute(
            select(Group)
            .join(QuestionGroup, QuestionGroup.group_id == Group.id)
            .filter(QuestionGroup.question_id == question_id)
            .order_by(Group.name.asc())
        )
        return list(result.scalars().all())

    async def link_group(self, question_id: str, group_id: str) -> bool:
        """Link a question to a group. Returns False when the link already existed."""
        question_id = (question_id or "").strip()
        group_id = (group_id or "").strip()
        if not question_id or not group_id:
            raise ValidationError("question_id and group_id are required")

        await self.get_question(question_id)
        result = await self.db.execute(select(Group.id).filter(Group.id == group_id))
        if result.first() is None:
            raise NotFound("Group not found")

        result = await self.db.execute(
            select(QuestionGroup).filter(QuestionGroup.question_id == question_id, QuestionGroup.group_id == group_id)
        )
        if result.scalar_one_or_none():
            return False

        self.db.add(QuestionGroup(question_id=question_id, group_id=group_id))
        try:
            await self.db.commit()
        except IntegrityError:
            # Linked concurrently; same outcome
            await self.db.rollback()
            return False
        logger.info("Question linked to group", question_id=question_id, group_id=group_id)
        return True

    async def unlink_group(self, question_id: str, group_id: str) -> bool:
        question_id = (question_id or "").strip()
        group_id = (group_id or "").strip()
        if not question_id or not group_id:
            raise ValidationError("question_id and group_id are required")

        result = await self.db.execute(
            delete(QuestionGroup).where(QuestionGroup.question_id == question_id, QuestionGroup.group_id == group_id)
        )
        await self.db.commit()
        removed = result.rowcount > 0
        logger.info("Question unlinked from group", question_id=question_id, group_id=group_id, removed=removed)
        return removed
