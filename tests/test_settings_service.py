import pytest
from sqlalchemy import select, func

from models.settings import QuizSettings
from services.settings_service import SettingsService
from core.exceptions import ValidationError


async def test_defaults_are_created_on_first_read(db):
    row = await SettingsService(db).get_settings()

    assert row.num_questions == 10
    assert row.randomize is True
    count = (await db.execute(select(func.count(QuizSettings.id)))).scalar()
    assert count == 1


async def test_repeated_reads_keep_a_single_row(db, session_factory):
    await SettingsService(db).get_settings()
    async with session_factory() as other:
        await SettingsService(other).get_settings()

    count = (await db.execute(select(func.count(QuizSettings.id)))).scalar()
    assert count == 1


async def test_partial_update(db):
    service = SettingsService(db)
    await service.update_settings(num_questions=25)
    row = await service.update_settings(randomize=False)

    assert row.num_questions == 25
    assert row.randomize is False


@pytest.mark.parametrize("value", [0, 201, -5, True, 2.5])
async def test_num_questions_out_of_range(db, value):
    with pytest.raises(ValidationError):
        await SettingsService(db).update_settings(num_questions=value)


@pytest.mark.parametrize("value", [1, 200])
async def test_num_questions_bounds_are_inclusive(db, value):
    row = await SettingsService(db).update_settings(num_questions=value)
    assert row.num_questions == value
