from sqlalchemy import Column, String, Text, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin, new_id

PROMPT_MAX_LENGTH = 2000
LABEL_MAX_LENGTH = 500

class Question(Base, TimestampMixin):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=new_id)
    prompt = Column(Text, nullable=False)

    # Read side only; choices are written through their question_id
    choices = relationship("Choice", order_by="Choice.label", viewonly=True)


class Choice(Base):
    __tablename__ = "choices"

    id = Column(String(36), primary_key=True, default=new_id)
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), index=True, nullable=False)
    label = Column(String(LABEL_MAX_LENGTH), nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
