from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from db.session import get_db, get_redis
from services.question_service import QuestionService
from services.group_service import GroupService
from services.settings_service import SettingsService
from api.auth import (
    require_admin, is_admin, check_credentials, generate_token, enforce_login_rate_limit,
)
from api.schemas import (
    LoginRequest, LoginResponse, AdminStatus,
    QuestionIn, QuestionOut, QuestionListItem, QuestionDetail,
    ChoiceIn, ChoicePatch, AdminChoice,
    GroupIn, GroupOut, GroupLinkIn,
    SettingsOut, SettingsPatch, SuccessResponse,
)
from core.config import settings
from core.exceptions import Unauthorized, ValidationError
from core.logger import logger

router = APIRouter(prefix="/admin", tags=["admin"])

AUTH_RESPONSES = {401: {"description": "Admin authentication required"}}


# === Session ===

@router.post("/login", response_model=LoginResponse, summary="Log in as admin",
             responses={401: {"description": "Invalid credentials"}, 429: {"description": "Too many attempts"}})
async def login(body: LoginRequest, request: Request, redis = Depends(get_redis)):
    client = request.client.host if request.client else "unknown"
    await enforce_login_rate_limit(redis, client)

    if not body.email.strip() or not body.password:
        raise ValidationError("Email and password required")
    if not check_credentials(body.email, body.password):
        logger.warning("Admin login failed", client=client, email_provided=bool(body.email.strip()))
        raise Unauthorized("Invalid credentials")

    logger.info("Admin logged in", client=client)
    return {"token": generate_token(), "expires_in": settings.TOKEN_TTL_SECONDS}


@router.get("/me", response_model=AdminStatus, summary="Check admin capability")
async def me(admin: bool = Depends(is_admin)):
    return {"is_admin": admin}


# === Questions ===

@router.get("/questions", response_model=List[QuestionListItem], summary="List questions", responses=AUTH_RESPONSES)
async def list_questions(_: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    rows = await QuestionService(db).list_questions()
    return [{
        "id": q.id,
        "prompt": q.prompt,
        "created_at": q.created_at,
        "choice_count": choice_count,
        "correct_count": correct_count,
    } for q, choice_count, correct_count in rows]


@router.post("/questions", response_model=QuestionOut, status_code=201, summary="Create question", responses=AUTH_RESPONSES)
async def create_question(body: QuestionIn, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await QuestionService(db).create_question(body.prompt)


@router.get("/questions/{question_id}", response_model=QuestionDetail, summary="Get question with choices and groups",
            responses=AUTH_RESPONSES)
async def get_question(question_id: str, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    service = QuestionService(db)
    question = await service.get_question(question_id)
    groups = await service.list_question_groups(question_id)
    return {
        "id": question.id,
        "prompt": question.prompt,
        "created_at": question.created_at,
        "choices": list(question.choices),
        "groups": groups,
    }


@router.patch("/questions/{question_id}", response_model=QuestionOut, summary="Edit question prompt", responses=AUTH_RESPONSES)
async def update_question(question_id: str, body: QuestionIn, _: str = Depends(require_admin),
                          db: AsyncSession = Depends(get_db)):
    question = await QuestionService(db).update_question(question_id, body.prompt)
    return {"id": question.id, "prompt": question.prompt, "created_at": question.created_at}


@router.delete("/questions/{question_id}", response_model=SuccessResponse, summary="Delete question",
               responses={**AUTH_RESPONSES, 409: {"description": "Question has recorded answers"}})
async def delete_question(question_id: str, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    await QuestionService(db).delete_question(question_id)
    return {"status": "success"}


# === Choices ===

@router.get("/questions/{question_id}/choices", response_model=List[AdminChoice], summary="List choices",
            responses=AUTH_RESPONSES)
async def list_choices(question_id: str, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await QuestionService(db).list_choices(question_id)


@router.post("/questions/{question_id}/choices", response_model=AdminChoice, status_code=201, summary="Add choice",
             responses=AUTH_RESPONSES)
async def add_choice(question_id: str, body: ChoiceIn, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await QuestionService(db).add_choice(question_id, body.label, body.is_correct)


@router.patch("/choices/{choice_id}", response_model=AdminChoice, summary="Rename choice or toggle correctness",
              responses=AUTH_RESPONSES)
async def update_choice(choice_id: str, body: ChoicePatch, _: str = Depends(require_admin),
                        db: AsyncSession = Depends(get_db)):
    return await QuestionService(db).update_choice(choice_id, label=body.label, is_correct=body.is_correct)


@router.delete("/choices/{choice_id}", response_model=SuccessResponse, summary="Delete choice", responses=AUTH_RESPONSES)
async def delete_choice(choice_id: str, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    await QuestionService(db).delete_choice(choice_id)
    return {"status": "success"}


# === Question <-> group links ===

@router.get("/questions/{question_id}/groups", response_model=List[GroupOut], summary="List groups of a question",
            responses=AUTH_RESPONSES)
async def list_question_groups(question_id: str, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await QuestionService(db).list_question_groups(question_id)


@router.post("/questions/{question_id}/groups", response_model=SuccessResponse, status_code=201,
             summary="Link question to group (idempotent)", responses=AUTH_RESPONSES)
async def link_group(question_id: str, body: GroupLinkIn, _: str = Depends(require_admin),
                     db: AsyncSession = Depends(get_db)):
    await QuestionService(db).link_group(question_id, body.group_id)
    return {"status": "success"}


@router.delete("/questions/{question_id}/groups", response_model=SuccessResponse,
               summary="Unlink question from group (idempotent)", responses=AUTH_RESPONSES)
async def unlink_group(question_id: str, group_id: str, _: str = Depends(require_admin),
                       db: AsyncSession = Depends(get_db)):
    await QuestionService(db).unlink_group(question_id, group_id)
    return {"status": "success"}


# === Groups ===

@router.post("/groups", response_model=GroupOut, status_code=201, summary="Create group", responses=AUTH_RESPONSES)
async def create_group(body: GroupIn, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await GroupService(db).create_group(body.name)


@router.patch("/groups/{group_id}", response_model=GroupOut, summary="Rename group", responses=AUTH_RESPONSES)
async def rename_group(group_id: str, body: GroupIn, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await GroupService(db).rename_group(group_id, body.name)


@router.delete("/groups/{group_id}", response_model=SuccessResponse, summary="Delete group", responses=AUTH_RESPONSES)
async def delete_group(group_id: str, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    await GroupService(db).remove_group(group_id)
    return {"status": "success"}


# === Settings ===

@router.patch("/settings", response_model=SettingsOut, summary="Update quiz settings", responses=AUTH_RESPONSES)
async def update_settings(body: SettingsPatch, _: str = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    return await SettingsService(db).update_settings(num_questions=body.num_questions, randomize=body.randomize)
