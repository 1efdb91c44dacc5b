"""
API tests for registration and phone verification
"""

import pytest
from sqlalchemy import select

from fanleague.models.user import User
from fanleague.services.verification import VerificationProvider, VerificationProviderError, get_verification_provider
from fanleague.main import app
from tests.fixtures.database import create_test_user

REGISTRATION = {
    "fullName": "Layla Hassan",
    "email": "layla@fanleague.io",
    "countryCode": "+966",
    "phoneNumber": "501234567",
    "location": "Riyadh",
    "favoriteGames": ["FIFA", "Tekken"],
    "language": "ar",
}


class FailingProvider(VerificationProvider):
    async def send(self, phone_number: str) -> str:
        raise VerificationProviderError("Service unavailable", status_code=503)

    async def check(self, phone_number: str, code: str) -> str:
        raise VerificationProviderError("Service unavailable", status_code=503)


@pytest.fixture
def failing_provider(test_client):
    app.dependency_overrides[get_verification_provider] = lambda: FailingProvider()


@pytest.mark.integration
class TestRegistration:

    @pytest.mark.asyncio
    async def test_create_user(self, test_client, session_factory):
        response = await test_client.post("/api/v1/users/create", json=REGISTRATION)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User created successfully"
        assert body["user"]["fullName"] == "Layla Hassan"
        assert body["user"]["phoneNumber"] == "501234567"
        assert body["user"]["isVerified"] is False

        async with session_factory() as session:
            user = (await session.execute(select(User))).scalar_one()
        assert user.country_code == "+966"
        assert user.favorite_games == ["FIFA", "Tekken"]
        assert user.language.value == "ar"

    @pytest.mark.asyncio
    async def test_phone_is_normalized(self, test_client):
        payload = {**REGISTRATION, "countryCode": "966", "phoneNumber": "+50 123-4567"}

        response = await test_client.post("/api/v1/users/create", json=payload)

        assert response.status_code == 201
        assert response.json()["user"]["phoneNumber"] == "501234567"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client):
        await test_client.post("/api/v1/users/create", json=REGISTRATION)

        response = await test_client.post(
            "/api/v1/users/create",
            json={**REGISTRATION, "phoneNumber": "509999999"}
        )

        assert response.status_code == 409
        assert response.json() == {"error": "User already exists", "field": "email"}

    @pytest.mark.asyncio
    async def test_duplicate_phone(self, test_client):
        await test_client.post("/api/v1/users/create", json=REGISTRATION)

        response = await test_client.post(
            "/api/v1/users/create",
            json={**REGISTRATION, "email": "other@fanleague.io"}
        )

        assert response.status_code == 409
        assert response.json()["field"] == "phoneNumber"

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client):
        payload = {key: value for key, value in REGISTRATION.items() if key != "location"}

        response = await test_client.post("/api/v1/users/create", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    @pytest.mark.asyncio
    async def test_blank_field_counts_as_missing(self, test_client):
        response = await test_client.post(
            "/api/v1/users/create",
            json={**REGISTRATION, "fullName": "   "}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    @pytest.mark.asyncio
    async def test_invalid_email(self, test_client):
        response = await test_client.post(
            "/api/v1/users/create",
            json={**REGISTRATION, "email": "not-an-email"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    @pytest.mark.asyncio
    async def test_wrong_method(self, test_client):
        response = await test_client.get("/api/v1/users/create")

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}


@pytest.mark.integration
class TestVerification:

    @pytest.mark.asyncio
    async def test_send_to_unknown_number(self, test_client):
        response = await test_client.post(
            "/api/v1/auth/send-verification",
            json={"phoneNumber": "+15550000000"}
        )

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    @pytest.mark.asyncio
    async def test_send_marks_pending(self, test_client, test_user, session_factory, verification_provider):
        response = await test_client.post(
            "/api/v1/auth/send-verification",
            json={"phoneNumber": "+15551112222"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "status": "pending",
            "message": "Verification code sent successfully",
        }
        assert verification_provider.sent == {"+15551112222": 1}

        async with session_factory() as session:
            user = await session.get(User, test_user.id)
        assert user.verification_expires is not None
        assert user.is_verified is False

    @pytest.mark.asyncio
    async def test_send_provider_failure(self, test_client, test_user, failing_provider):
        response = await test_client.post(
            "/api/v1/auth/send-verification",
            json={"phoneNumber": "+15551112222"}
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to send verification code",
            "details": "Service unavailable",
        }

    @pytest.mark.asyncio
    async def test_verify_correct_code(self, test_client, test_user):
        response = await test_client.post(
            "/api/v1/auth/verify-code",
            json={"phoneNumber": "+15551112222", "code": "123456"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "approved"
        assert body["user"]["id"] == str(test_user.id)
        assert body["user"]["isVerified"] is True

    @pytest.mark.asyncio
    async def test_verify_is_idempotent(self, test_client, test_user):
        for _ in range(2):
            response = await test_client.post(
                "/api/v1/auth/verify-code",
                json={"phoneNumber": "+15551112222", "code": "123456"}
            )
            assert response.status_code == 200
            assert response.json()["user"]["isVerified"] is True

    @pytest.mark.asyncio
    async def test_verify_matches_country_code_and_number(self, test_client, async_session, session_factory):
        # "+44" + "15551112222" must not be taken for "+1" + "5551112222"
        uk_fan = await create_test_user(
            async_session, email="uk@x.com", country_code="+44", phone_number="15551112222"
        )
        us_fan = await create_test_user(
            async_session, email="a@x.com", country_code="+1", phone_number="5551112222"
        )

        response = await test_client.post(
            "/api/v1/auth/verify-code",
            json={"phoneNumber": "+15551112222", "code": "123456"}
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == str(us_fan.id)
        async with session_factory() as session:
            assert (await session.get(User, us_fan.id)).is_verified is True
            assert (await session.get(User, uk_fan.id)).is_verified is False

    @pytest.mark.asyncio
    async def test_number_shared_by_two_accounts(self, test_client, async_session):
        await create_test_user(async_session, email="a@x.com", country_code="+1", phone_number="15551112222")
        await create_test_user(async_session, email="b@x.com", country_code="+11", phone_number="5551112222")

        response = await test_client.post(
            "/api/v1/auth/send-verification",
            json={"phoneNumber": "+115551112222"}
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Phone number matches more than one account"}

    @pytest.mark.asyncio
    async def test_verify_wrong_code(self, test_client, test_user, session_factory):
        response = await test_client.post(
            "/api/v1/auth/verify-code",
            json={"phoneNumber": "+15551112222", "code": "000000"}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "status": "pending",
            "message": "Invalid verification code",
        }

        async with session_factory() as session:
            user = await session.get(User, test_user.id)
        assert user.is_verified is False

    @pytest.mark.asyncio
    async def test_verify_approved_for_unknown_user(self, test_client):
        response = await test_client.post(
            "/api/v1/auth/verify-code",
            json={"phoneNumber": "+15550000000", "code": "123456"}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_verify_provider_failure(self, test_client, test_user, failing_provider):
        response = await test_client.post(
            "/api/v1/auth/verify-code",
            json={"phoneNumber": "+15551112222", "code": "123456"}
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to verify code"

    @pytest.mark.asyncio
    async def test_verify_missing_code(self, test_client):
        response = await test_client.post(
            "/api/v1/auth/verify-code",
            json={"phoneNumber": "+15551112222"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    @pytest.mark.asyncio
    async def test_number_without_plus(self, test_client, async_session):
        await create_test_user(async_session, country_code="+966", phone_number="501234567", email="sa@fanleague.io")

        response = await test_client.post(
            "/api/v1/auth/send-verification",
            json={"phoneNumber": "966501234567"}
        )

        assert response.status_code == 200
