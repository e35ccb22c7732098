from sqlalchemy import Column, Integer, Boolean, CheckConstraint
from models.base import Base

SETTINGS_ROW_ID = 1
MIN_NUM_QUESTIONS = 1
MAX_NUM_QUESTIONS = 200

class QuizSettings(Base):
    __tablename__ = "settings"
    __table_args__ = (
        CheckConstraint(
            f"num_questions >= {MIN_NUM_QUESTIONS} AND num_questions <= {MAX_NUM_QUESTIONS}",
            name="ck_settings_num_questions_range",
        ),
    )

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    num_questions = Column(Integer, default=10, nullable=False)
    randomize = Column(Boolean, default=True, nullable=False)
