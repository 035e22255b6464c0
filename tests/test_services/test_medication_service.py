"""
Tests for Medication, Category and User Services
"""

import pytest
from datetime import datetime, date, timezone

from errors import AuthorizationError, NotFoundError, ValidationError
from models import DoseLog, Medication
from services.category_service import CategoryService
from services.medication_service import MedicationService
from services.user_service import UserService


@pytest.fixture
def medication_service():
    return MedicationService()


@pytest.fixture
def category_service():
    return CategoryService()


@pytest.fixture
def user_service():
    return UserService()


# =============================================================================
# Medication Tests
# =============================================================================

class TestMedicationService:

    @pytest.mark.asyncio
    async def test_add_medication(self, medication_service, db_session, test_user):
        medication = await medication_service.add_medication(
            test_user.id, "Metformin", "500mg", frequency_per_day=2,
            start_date=date(2024, 3, 1), db=db_session
        )

        assert medication.id is not None
        assert medication.user_id == test_user.id
        assert medication.frequency_per_day == 2
        assert medication.end_date is None

    @pytest.mark.asyncio
    async def test_add_rejects_zero_frequency(self, medication_service, db_session, test_user):
        with pytest.raises(ValidationError):
            await medication_service.add_medication(
                test_user.id, "Metformin", "500mg", frequency_per_day=0,
                start_date=date(2024, 3, 1), db=db_session
            )

    @pytest.mark.asyncio
    async def test_add_rejects_end_before_start(self, medication_service, db_session, test_user):
        with pytest.raises(ValidationError):
            await medication_service.add_medication(
                test_user.id, "Metformin", "500mg",
                start_date=date(2024, 3, 5), end_date=date(2024, 3, 4), db=db_session
            )

    @pytest.mark.asyncio
    async def test_add_with_other_users_category(self, medication_service, db_session,
                                                 other_user, test_category):
        with pytest.raises(AuthorizationError):
            await medication_service.add_medication(
                other_user.id, "Metformin", "500mg",
                start_date=date(2024, 3, 1), category_id=test_category.id, db=db_session
            )

    @pytest.mark.asyncio
    async def test_list_sorted_by_name(self, medication_service, db_session, test_user,
                                       test_medication, twice_daily_medication):
        medications = await medication_service.get_user_medications(test_user.id, db=db_session)

        assert [m.name for m in medications] == ["Lisinopril", "Metformin"]

    @pytest.mark.asyncio
    async def test_get_other_users_medication(self, medication_service, db_session,
                                              other_user, test_medication):
        with pytest.raises(AuthorizationError):
            await medication_service.get_medication(other_user.id, test_medication.id, db=db_session)

    @pytest.mark.asyncio
    async def test_get_missing_medication(self, medication_service, db_session, test_user):
        with pytest.raises(NotFoundError):
            await medication_service.get_medication(test_user.id, 999, db=db_session)

    @pytest.mark.asyncio
    async def test_update_ignores_unknown_fields(self, medication_service, db_session,
                                                 test_user, test_medication):
        medication = await medication_service.update_medication(
            test_user.id, test_medication.id,
            {"dose": "850mg", "user_id": 999}, db=db_session
        )

        assert medication.dose == "850mg"
        assert medication.user_id == test_user.id

    @pytest.mark.asyncio
    async def test_update_validates_frequency(self, medication_service, db_session,
                                              test_user, test_medication):
        with pytest.raises(ValidationError):
            await medication_service.update_medication(
                test_user.id, test_medication.id, {"frequency_per_day": 0}, db=db_session
            )

    @pytest.mark.asyncio
    async def test_discontinue(self, medication_service, db_session, test_user, test_medication):
        medication = await medication_service.discontinue_medication(
            test_user.id, test_medication.id, end_date=date(2024, 3, 12), db=db_session
        )

        assert medication.end_date == date(2024, 3, 12)

    @pytest.mark.asyncio
    async def test_discontinue_defaults_to_users_today(self, db_session, test_user, test_medication):
        # 2026-10-19 12:00 UTC is already 2026-10-20 in Kiritimati (UTC+14)
        test_user.timezone = "Pacific/Kiritimati"
        db_session.commit()
        service = MedicationService(clock=lambda: datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc))

        medication = await service.discontinue_medication(test_user.id, test_medication.id, db=db_session)

        assert medication.end_date == date(2026, 10, 20)

    @pytest.mark.asyncio
    async def test_add_defaults_to_users_today(self, db_session, test_user):
        # 2024-03-10 02:00 UTC is still 2024-03-09 in New York
        test_user.timezone = "America/New_York"
        db_session.commit()
        service = MedicationService(clock=lambda: datetime(2024, 3, 10, 2, 0, tzinfo=timezone.utc))

        medication = await service.add_medication(test_user.id, "Metformin", "500mg", db=db_session)

        assert medication.start_date == date(2024, 3, 9)

    @pytest.mark.asyncio
    async def test_delete_removes_logs(self, medication_service, db_session, test_user, test_medication):
        db_session.add(DoseLog(
            medication_id=test_medication.id,
            scheduled_time=datetime(2024, 3, 10, 8, 0),
            actual_time=datetime(2024, 3, 10, 8, 5),
            taken_on_time=True,
            reward_earned=True
        ))
        db_session.commit()

        await medication_service.delete_medication(test_user.id, test_medication.id, db=db_session)

        assert db_session.query(Medication).count() == 0
        assert db_session.query(DoseLog).count() == 0


# =============================================================================
# Category Tests
# =============================================================================

class TestCategoryService:

    @pytest.mark.asyncio
    async def test_create_and_list(self, category_service, db_session, test_user):
        await category_service.create_category(test_user.id, "Vitamins", db=db_session)
        await category_service.create_category(test_user.id, "Heart", db=db_session)

        categories = await category_service.get_user_categories(test_user.id, db=db_session)

        assert [c.name for c in categories] == ["Heart", "Vitamins"]

    @pytest.mark.asyncio
    async def test_duplicate_name(self, category_service, db_session, test_user, test_category):
        with pytest.raises(ValidationError):
            await category_service.create_category(test_user.id, test_category.name, db=db_session)

    @pytest.mark.asyncio
    async def test_rename_other_users_category(self, category_service, db_session,
                                               other_user, test_category):
        with pytest.raises(AuthorizationError):
            await category_service.rename_category(other_user.id, test_category.id, "Mine", db=db_session)

    @pytest.mark.asyncio
    async def test_add_medication_with_unknown_category(self, medication_service, db_session, test_user):
        with pytest.raises(NotFoundError):
            await medication_service.add_medication(
                test_user.id, "Metformin", "500mg", start_date=date(2024, 3, 1),
                category_id=999, db=db_session
            )

    @pytest.mark.asyncio
    async def test_delete_keeps_medications(self, category_service, db_session, test_user,
                                            test_category, test_medication):
        test_medication.category_id = test_category.id
        db_session.commit()

        await category_service.delete_category(test_user.id, test_category.id, db=db_session)

        db_session.expire_all()
        medication = db_session.query(Medication).one()
        assert medication.category_id is None


# =============================================================================
# User Tests
# =============================================================================

class TestUserService:

    @pytest.mark.asyncio
    async def test_create_user_default_timezone(self, user_service, db_session):
        user = await user_service.create_user("new@example.com", db=db_session)

        assert user.timezone == "UTC"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, user_service, db_session, test_user):
        with pytest.raises(ValidationError):
            await user_service.create_user(test_user.email, db=db_session)

    @pytest.mark.asyncio
    async def test_unknown_timezone(self, user_service, db_session):
        with pytest.raises(ValidationError):
            await user_service.create_user("tz@example.com", timezone="Mars/Olympus", db=db_session)

    @pytest.mark.asyncio
    async def test_update_timezone(self, user_service, db_session, test_user):
        user = await user_service.update_user(
            test_user.id, {"timezone": "Europe/Paris"}, db=db_session
        )

        assert user.timezone == "Europe/Paris"
