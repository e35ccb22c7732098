from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt


# === Quiz flow ===

class StartQuizRequest(BaseModel):
    """Request body for starting a quiz run."""
    player_name: str = Field(..., description="Name shown on the leaderboard", examples=["Ada"])
    group_ids: Optional[List[str]] = Field(None, description="Only draw questions linked to any of these groups")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "player_name": "Ada",
                "group_ids": ["6f1c2a8e-4d5b-4a8f-9a51-0c3f1b7d2e11"],
            }
        }
    )


class QuizChoice(BaseModel):
    """A choice as the quiz taker sees it. Correctness is never included."""
    id: str
    label: str


class QuizQuestion(BaseModel):
    id: str
    prompt: str
    choices: List[QuizChoice]


class StartQuizResponse(BaseModel):
    attempt_id: str = Field(..., description="Id to submit answers against")
    total: int = Field(..., description="Number of questions in this run")
    questions: List[QuizQuestion]


class AnswerRequest(BaseModel):
    """Request body for answering one question of an attempt."""
    attempt_id: str
    question_id: str
    selected_choice_ids: List[str] = Field(..., description="Every choice the player selected")


class AnswerResponse(BaseModel):
    correct: bool
    score: int = Field(..., description="Attempt score after this answer")


class ChoiceOut(BaseModel):
    id: str
    label: str


class MissedQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(..., alias="questionId")
    prompt: str
    correct_choices: List[ChoiceOut] = Field(..., alias="correctChoices")


class ResultsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(..., alias="runId")
    incorrect: List[MissedQuestion]


class LeaderboardEntry(BaseModel):
    id: str
    player_name: str
    score: int
    total: int
    created_at: datetime


# === Admin ===

class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str = Field(..., description="Send as `Authorization: Bearer <token>`")
    expires_in: int = Field(..., description="Token lifetime in seconds")


class AdminStatus(BaseModel):
    is_admin: bool


class QuestionIn(BaseModel):
    prompt: str = Field(..., description="Question text (max 2000 characters)")


class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    prompt: str
    created_at: datetime


class QuestionListItem(QuestionOut):
    choice_count: int = Field(..., description="Number of choices")
    correct_count: int = Field(..., description="Number of choices marked correct; 0 means the question can never be scored")


class AdminChoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    is_correct: bool
    question_id: str


class GroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class QuestionDetail(QuestionOut):
    choices: List[AdminChoice]
    groups: List[GroupOut]


class ChoiceIn(BaseModel):
    label: str
    is_correct: StrictBool = False


class ChoicePatch(BaseModel):
    label: Optional[str] = None
    is_correct: Optional[StrictBool] = None


class GroupIn(BaseModel):
    name: str


class GroupLinkIn(BaseModel):
    group_id: str


class SettingsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    num_questions: int
    randomize: bool


class SettingsPatch(BaseModel):
    num_questions: Optional[StrictInt] = Field(None, description="Questions per quiz (1-200)")
    randomize: Optional[StrictBool] = None


class SuccessResponse(BaseModel):
    """Generic success response."""
    status: str = Field(default="success", description="Operation status")
