from collections import defaultdict
from typing import Dict, List, Optional, Set
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models.question import Question, Choice
from models.attempt import Attempt, AttemptAnswer
from services.answer_service import exact_set_match
from core.exceptions import ValidationError, NotFound
from core.config import settings
from core.logger import logger

# Missed-question policies:
#   current  - re-judge recorded selections against today's correct choices
#   recorded - trust the is_correct flag stored when the answer was graded
POLICY_CURRENT = "current"
POLICY_RECORDED = "recorded"
POLICIES = (POLICY_CURRENT, POLICY_RECORDED)


def merge_selections(answers: List[AttemptAnswer]) -> Dict[str, Set[str]]:
    """
    Union every answer row's selected ids into one set per question.

    Rows with an empty selection are left out, so their questions are never
    reported as missed.
    """
    selected: Dict[str, Set[str]] = defaultdict(set)
    for answer in answers:
        value = answer.selected_choice_ids
        if isinstance(value, (list, tuple, set)):
            ids = {str(v) for v in value if v}
        else:
            # Single-id representation
            ids = {str(value)} if value else set()
        if ids:
            selected[answer.question_id].update(ids)
    return dict(selected)


class ResultsService:
    def __init__(self, db: AsyncSession, policy: Optional[str] = None):
        self.db = db
        self.policy = policy or settings.RESULTS_POLICY
        if self.policy not in POLICIES:
            raise ValueError(f"Unknown results policy: {self.policy}")

    async def get_results(self, attempt_id: str) -> Dict:
        """Rebuild the list of questions the player missed in an attempt."""
        attempt_id = (attempt_id or "").strip()
        if not attempt_id:
            raise ValidationError("attempt_id is required")

        result = await self.db.execute(select(Attempt).filter(Attempt.id == attempt_id))
        attempt = result.scalar_one_or_none()
        if not attempt:
            raise NotFound("Attempt not found")

        result = await self.db.execute(select(AttemptAnswer).filter(AttemptAnswer.attempt_id == attempt_id))
        answers = list(result.scalars().all())
        if not answers:
            return {"runId": attempt_id, "incorrect": []}

        selected = merge_selections(answers)
        recorded = defaultdict(bool)
        for answer in answers:
            recorded[answer.question_id] = recorded[answer.question_id] or bool(answer.is_correct)

        question_ids = list(selected.keys())
        result = await self.db.execute(select(Question).filter(Question.id.in_(question_ids)))
        questions = {q.id: q for q in result.scalars().all()}

        result = await self.db.execute(
            select(Choice).filter(Choice.question_id.in_(question_ids)).order_by(Choice.label, Choice.id)
        )
        correct_by_question: Dict[str, List[Choice]] = defaultdict(list)
        for choice in result.scalars().all():
            if choice.is_correct:
                correct_by_question[choice.question_id].append(choice)

        # Served order first, anything else after
        served = [qid for qid in (attempt.question_ids or []) if qid in questions]
        ordered = served + sorted(qid for qid in questions if qid not in served)

        incorrect = []
        for qid in ordered:
            correct = correct_by_question.get(qid, [])
            if not correct:
                # Unconfigured question, nothing to judge against
                continue

            if self.policy == POLICY_RECORDED:
                missed = not recorded[qid]
            else:
                missed = not exact_set_match((c.id for c in correct), selected[qid])

            if missed:
                incorrect.append({
                    "questionId": qid,
                    "prompt": questions[qid].prompt,
                    "correctChoices": [{"id": c.id, "label": c.label} for c in correct],
                })

        logger.info("Results rebuilt", attempt_id=attempt_id, answered=len(questions), missed=len(incorrect), policy=self.policy)
        return {"runId": attempt_id, "incorrect": incorrect}
