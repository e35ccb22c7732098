from sqlalchemy import Column, Integer, String, Boolean, JSON, ForeignKey, UniqueConstraint, Index
from models.base import Base, TimestampMixin, new_id

class Attempt(Base, TimestampMixin):
    __tablename__ = "attempts"

    id = Column(String(36), primary_key=True, default=new_id)
    player_name = Column(String(100), nullable=False)
    score = Column(Integer, default=0, nullable=False)
    total = Column(Integer, nullable=False)

    # Question ids served in this run, in the order they were served
    question_ids = Column(JSON, nullable=False, default=list)


class AttemptAnswer(Base, TimestampMixin):
    __tablename__ = "attempt_answers"
    __table_args__ = (
        # One answer per question per attempt; the insert is the arbiter of "first answer wins"
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_answers_attempt_question"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    attempt_id = Column(String(36), ForeignKey("attempts.id", ondelete="CASCADE"), index=True, nullable=False)
    question_id = Column(String(36), ForeignKey("questions.id"), index=True, nullable=False)
    selected_choice_ids = Column(JSON, nullable=False)
    is_correct = Column(Boolean, nullable=False)

# Leaderboard ordering
Index("idx_attempts_score_created", Attempt.score.desc(), Attempt.created_at)
