from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
from db.session import get_db
from services.quiz_service import QuizService
from services.answer_service import AnswerService
from services.results_service import ResultsService
from services.stats_service import StatsService, LEADERBOARD_MIN_LIMIT, LEADERBOARD_MAX_LIMIT
from services.group_service import GroupService
from services.settings_service import SettingsService
from api import admin
from api.schemas import (
    StartQuizRequest, StartQuizResponse, AnswerRequest, AnswerResponse,
    ResultsResponse, LeaderboardEntry, GroupOut, SettingsOut,
)
from core.config import settings
from core.exceptions import QuizError, StorageError
from core.logger import setup_logging, logger

# API Documentation
API_DESCRIPTION = """
## Quiz API

Take randomly or sequentially assembled quizzes, get graded answer by answer,
and review missed questions. Admin endpoints manage the question bank.

### Authentication

Admin endpoints (`/admin/*`) require a token from `POST /admin/login`:

- Header: `Authorization: Bearer <token>`
- Or: `X-Auth-Token: <token>`

### Errors

Every failure returns `{"error": "<reason>"}` with the matching status code.
"""

TAGS_METADATA = [
    {
        "name": "quiz",
        "description": "Start a quiz, answer questions, read results.",
    },
    {
        "name": "info",
        "description": "Public information endpoints.",
    },
    {
        "name": "admin",
        "description": "Question bank, groups and settings management.",
    },
]

# Also covers `uvicorn api.main:app` launched without main.py
setup_logging()

app = FastAPI(
    title="Quiz API",
    description=API_DESCRIPTION,
    version="1.0.0",
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
    license_info={
        "name": "MIT",
    },
)

if settings.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# === Error mapping ===

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message)
    return error_response(exc.status_code, exc.message)


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage failure", path=request.url.path, error=str(exc))
    return error_response(StorageError.status_code, "Storage failure")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    reasons = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        reasons.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(400, "; ".join(reasons) or "Invalid request")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


app.include_router(admin.router)


# === Quiz flow ===

@app.post(
    "/quiz/start",
    response_model=StartQuizResponse,
    status_code=201,
    tags=["quiz"],
    summary="Start a quiz",
    description="Assembles a question set from the current settings and creates an attempt. "
                "Choices come without correctness data.",
    responses={
        201: {"description": "Attempt created"},
        400: {"description": "Missing player_name or no questions available"},
    },
)
async def start_quiz(body: StartQuizRequest, db: AsyncSession = Depends(get_db)):
    return await QuizService(db).start_attempt(body.player_name, body.group_ids)


@app.post(
    "/quiz/answer",
    response_model=AnswerResponse,
    tags=["quiz"],
    summary="Answer one question",
    description="Grades a selection with exact-set matching. Each question can be answered once per attempt.",
    responses={
        400: {"description": "Malformed input"},
        404: {"description": "Attempt not found"},
        409: {"description": "Question already answered for this attempt"},
    },
)
async def answer_question(body: AnswerRequest, db: AsyncSession = Depends(get_db)):
    return await AnswerService(db).submit_answer(body.attempt_id, body.question_id, body.selected_choice_ids)


@app.get(
    "/quiz/results/{attempt_id}",
    response_model=ResultsResponse,
    tags=["quiz"],
    summary="Missed questions of an attempt",
    responses={404: {"description": "Attempt not found"}},
)
async def quiz_results(attempt_id: str, db: AsyncSession = Depends(get_db)):
    return await ResultsService(db).get_results(attempt_id)


@app.get(
    "/leaderboard",
    response_model=List[LeaderboardEntry],
    tags=["info"],
    summary="Top attempts",
    description="Ordered by score, earliest attempt first on ties.",
)
async def leaderboard(
    limit: Optional[int] = Query(None, description=f"{LEADERBOARD_MIN_LIMIT}-{LEADERBOARD_MAX_LIMIT}, default {settings.LEADERBOARD_DEFAULT_LIMIT}"),
    db: AsyncSession = Depends(get_db),
):
    return await StatsService(db).get_leaderboard(limit)


@app.get("/groups", response_model=List[GroupOut], tags=["info"], summary="List groups")
async def list_groups(db: AsyncSession = Depends(get_db)):
    return await GroupService(db).list_groups()


@app.get("/settings", response_model=SettingsOut, tags=["info"], summary="Current quiz settings")
async def get_settings(db: AsyncSession = Depends(get_db)):
    return await SettingsService(db).get_settings()


@app.get("/health", tags=["info"], include_in_schema=False)
async def health():
    return {"status": "ok"}
