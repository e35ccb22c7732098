from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from models.group import Group, QuestionGroup
from core.exceptions import ValidationError, NotFound
from core.logger import logger

GROUP_NAME_MAX_LENGTH = 255


def clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("name is required")
    text = name.strip()
    if len(text) > GROUP_NAME_MAX_LENGTH:
        raise ValidationError(f"name must be at most {GROUP_NAME_MAX_LENGTH} characters")
    return text


class GroupService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_groups(self) -> list[Group]:
        result = await self.db.execute(select(Group).order_by(Group.name.asc(), Group.id.asc()))
        return list(result.scalars().all())

    async def get_group(self, group_id: str) -> Group:
        result = await self.db.execute(select(Group).filter(Group.id == group_id))
        group = result.scalar_one_or_none()
        if not group:
            raise NotFound("Group not found")
        return group

    async def create_group(self, name: str) -> Group:
        group = Group(name=clean_name(name))
        self.db.add(group)
        await self.db.commit()
        await self.db.refresh(group)
        logger.info("Group created", group_id=group.id, name=group.name)
        return group

    async def rename_group(self, group_id: str, name: str) -> Group:
        text = clean_name(name)
        group = await self.get_group(group_id)
        if group.name != text:
            group.name = text
            await self.db.commit()
            await self.db.refresh(group)
            logger.info("Group renamed", group_id=group_id, name=text)
        return group

    async def remove_group(self, group_id: str) -> None:
        await self.get_group(group_id)
        await self.db.execute(delete(QuestionGroup).where(QuestionGroup.group_id == group_id))
        await self.db.execute(delete(Group).where(Group.id == group_id))
        await self.db.commit()
        logger.info("Group removed", group_id=group_id)
