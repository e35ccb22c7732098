from sqlalchemy import Column, String, ForeignKey
from models.base import Base, TimestampMixin, new_id

class Group(Base, TimestampMixin):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)


class QuestionGroup(Base):
    """Many-to-many link between questions and groups. The composite key makes linking idempotent."""
    __tablename__ = "question_groups"

    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True, index=True)
