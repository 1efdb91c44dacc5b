"""
Integration tests for user repository operations
"""

import pytest
from datetime import timedelta
from sqlalchemy.exc import IntegrityError

from fanleague.db.base import utcnow
from fanleague.models.enums import Language
from fanleague.repos.user_repo import (
    AmbiguousPhoneNumber,
    count_users,
    find_existing_user,
    get_user_by_e164,
    get_user_by_email,
    get_user_by_id,
    get_users,
    mark_user_verified,
    mark_verification_pending,
)
from tests.fixtures.database import create_test_user


@pytest.mark.integration
@pytest.mark.asyncio
async def test_user_creation_and_retrieval(async_session):
    """Created users start unverified with an empty loyalty projection."""
    user = await create_test_user(async_session, language=Language.AR)

    assert user.id is not None
    assert user.is_verified is False
    assert user.loyalty_points == 0
    assert user.rewards == {"scarf": False, "vipTicket": False, "jersey": False}
    assert user.language == Language.AR
    assert user.created_at is not None

    retrieved = await get_user_by_id(async_session, user.id)
    assert retrieved.email == "fan@fanleague.io"

    by_email = await get_user_by_email(async_session, "FAN@fanleague.io")
    assert by_email.id == user.id


@pytest.mark.integration
@pytest.mark.asyncio
async def test_email_and_phone_are_unique(async_session):
    await create_test_user(async_session)

    with pytest.raises(IntegrityError):
        await create_test_user(async_session, email="other@fanleague.io")
    await async_session.rollback()

    with pytest.raises(IntegrityError):
        await create_test_user(async_session, phone_number="5559990000")
    await async_session.rollback()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_find_existing_user(async_session):
    user = await create_test_user(async_session)

    assert (await find_existing_user(async_session, "fan@fanleague.io", "5550000000")).id == user.id
    assert (await find_existing_user(async_session, "new@fanleague.io", "+5551112222")).id == user.id
    assert await find_existing_user(async_session, "new@fanleague.io", "5550000000") is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_get_user_by_e164(async_session):
    """Lookup combines the stored country code and national number."""
    user = await create_test_user(async_session, country_code="+1", phone_number="5551112222")

    assert (await get_user_by_e164(async_session, "+15551112222")).id == user.id
    assert (await get_user_by_e164(async_session, "15551112222")).id == user.id
    assert await get_user_by_e164(async_session, "+445551112222") is None


@pytest.mark.integration
@pytest.mark.asyncio
async def test_get_user_by_e164_ignores_prefixed_national_number(async_session):
    await create_test_user(async_session, email="uk@x.com", country_code="+44", phone_number="15551112222")

    assert await get_user_by_e164(async_session, "+15551112222") is None
    assert (await get_user_by_e164(async_session, "+4415551112222")).email == "uk@x.com"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_get_user_by_e164_ambiguous(async_session):
    await create_test_user(async_session, email="a@x.com", country_code="+1", phone_number="15551112222")
    await create_test_user(async_session, email="b@x.com", country_code="+11", phone_number="5551112222")

    with pytest.raises(AmbiguousPhoneNumber):
        await get_user_by_e164(async_session, "+115551112222")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_mark_user_verified_is_idempotent(async_session):
    user = await create_test_user(async_session)
    await mark_verification_pending(async_session, user.id, utcnow() + timedelta(minutes=10))
    await async_session.refresh(user)
    assert user.verification_expires is not None

    assert await mark_user_verified(async_session, user.id) is True
    assert await mark_user_verified(async_session, user.id) is False

    await async_session.refresh(user)
    assert user.is_verified is True
    assert user.verification_expires is None
    assert await count_users(async_session, verified_only=True) == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_get_users_search(async_session):
    await create_test_user(async_session, full_name="Layla Hassan", email="layla@fanleague.io", phone_number="5550001111", location="Riyadh")
    await create_test_user(async_session, full_name="Omar Ali", email="omar@fanleague.io", phone_number="5550002222", location="Jeddah")

    assert [u.full_name for u in await get_users(async_session, q="layla")] == ["Layla Hassan"]
    assert [u.full_name for u in await get_users(async_session, q="0002222")] == ["Omar Ali"]
    assert [u.full_name for u in await get_users(async_session, location="Jeddah")] == ["Omar Ali"]
    assert await count_users(async_session) == 2
