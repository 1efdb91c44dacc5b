"""
API tests for the admin panel: login, permissions, attendance queue, loyalty
adjustments, analytics and exports
"""

import csv
import io
import pytest
from datetime import timedelta

from fanleague.core.auth import create_admin_token
from fanleague.models.enums import AttendanceStatus
from fanleague.models.user import User
from tests.conftest import ADMIN_PASSWORD
from tests.fixtures.database import (
    create_attended_history,
    create_test_attendance,
    create_test_tournament,
    create_test_user,
)


@pytest.mark.integration
class TestAdminAuth:

    @pytest.mark.asyncio
    async def test_login(self, test_client, admin_user):
        response = await test_client.post(
            "/api/v1/admin/login",
            json={"email": "ADMIN@fanleague.io", "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0
        assert body["admin"]["id"] == str(admin_user.id)
        assert body["admin"]["role"] == "admin"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client, admin_user):
        response = await test_client.post(
            "/api/v1/admin/login",
            json={"email": "admin@fanleague.io", "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid credentials"}

    @pytest.mark.asyncio
    async def test_login_non_admin_user(self, test_client, test_user):
        response = await test_client.post(
            "/api/v1/admin/login",
            json={"email": "fan@fanleague.io", "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, test_client, admin_headers):
        response = await test_client.get("/api/v1/admin/me", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["admin"]["permissions"]["export_data"] is False
        assert response.json()["admin"]["lastLogin"] is not None

    @pytest.mark.asyncio
    async def test_requires_token(self, test_client):
        response = await test_client.get("/api/v1/admin/users")

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    @pytest.mark.asyncio
    async def test_rejects_garbage_token(self, test_client):
        response = await test_client.get(
            "/api/v1/admin/users",
            headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_expired_token(self, test_client, admin_user):
        token = create_admin_token(admin_user, expires_delta=timedelta(minutes=-1))

        response = await test_client.get(
            "/api/v1/admin/users",
            headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_permission(self, test_client, admin_headers):
        response = await test_client.get("/api/v1/admin/users/export", headers=admin_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions", "details": "export_data"}


@pytest.mark.integration
class TestAdminUsers:

    @pytest.mark.asyncio
    async def test_list_search_and_sort(self, test_client, async_session, admin_headers):
        layla = await create_test_user(
            async_session, full_name="Layla", email="layla@fanleague.io",
            phone_number="5550001111", location="Riyadh", favorite_games=["Tekken"]
        )
        await create_test_user(
            async_session, full_name="Omar", email="omar@fanleague.io",
            phone_number="5550002222", location="Jeddah", favorite_games=["FIFA"]
        )
        await create_attended_history(async_session, layla, 2)

        response = await test_client.get(
            "/api/v1/admin/users",
            params={"sortBy": "attendedEvents", "order": "desc"},
            headers=admin_headers
        )
        body = response.json()
        assert response.status_code == 200
        # Includes the admin's own user account
        assert body["total"] == 3
        assert body["users"][0]["fullName"] == "Layla"
        assert body["users"][0]["attendedEvents"] == 2
        assert body["users"][0]["loyaltyPoints"] == 2
        assert "Riyadh" in body["locations"]

        by_game = await test_client.get("/api/v1/admin/users", params={"game": "Tekken"}, headers=admin_headers)
        assert [user["fullName"] for user in by_game.json()["users"]] == ["Layla"]

        searched = await test_client.get("/api/v1/admin/users", params={"q": "omar@"}, headers=admin_headers)
        assert [user["fullName"] for user in searched.json()["users"]] == ["Omar"]

    @pytest.mark.asyncio
    async def test_export_csv(self, test_client, test_user, super_admin_headers):
        response = await test_client.get(
            "/api/v1/admin/users/export",
            params={"format": "csv"},
            headers=super_admin_headers
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "users.csv" in response.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(response.text)))
        fan = next(row for row in rows if row["email"] == "fan@fanleague.io")
        assert fan["favoriteGames"] == "FIFA"
        assert fan["isVerified"] == "False"

        logs = await test_client.get(
            "/api/v1/admin/audit-logs",
            params={"action": "export_users"},
            headers=super_admin_headers
        )
        assert len(logs.json()["logs"]) == 1

    @pytest.mark.asyncio
    async def test_export_json(self, test_client, test_user, super_admin_headers):
        response = await test_client.get(
            "/api/v1/admin/users/export",
            params={"format": "json"},
            headers=super_admin_headers
        )

        assert response.status_code == 200
        emails = {row["email"] for row in response.json()}
        assert "fan@fanleague.io" in emails

    @pytest.mark.asyncio
    async def test_export_rejects_unknown_format(self, test_client, super_admin_headers):
        response = await test_client.get(
            "/api/v1/admin/users/export",
            params={"format": "xlsx"},
            headers=super_admin_headers
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestAdminAttendance:

    @pytest.mark.asyncio
    async def test_pending_queue(self, test_client, async_session, test_user, test_tournament, admin_headers):
        await create_test_attendance(async_session, test_user, test_tournament)

        response = await test_client.get(
            "/api/v1/admin/attendance",
            params={"status": "pending"},
            headers=admin_headers
        )

        records = response.json()["attendance"]
        assert len(records) == 1
        assert records[0]["status"] == "registered"
        assert records[0]["user"]["fullName"] == "Test Fan"
        assert records[0]["tournament"]["title"] == "Spring Cup"

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, test_client, admin_headers):
        response = await test_client.get(
            "/api/v1/admin/attendance",
            params={"status": "maybe"},
            headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid status"

    @pytest.mark.asyncio
    async def test_approve_then_attend(self, test_client, async_session, session_factory,
                                       test_user, test_tournament, admin_user, admin_headers):
        attendance = await create_test_attendance(async_session, test_user, test_tournament)

        approved = await test_client.post(
            f"/api/v1/admin/attendance/{attendance.id}/approve",
            headers=admin_headers
        )
        attended = await test_client.post(
            f"/api/v1/admin/attendance/{attendance.id}/attend",
            headers=admin_headers
        )

        assert approved.status_code == 200
        assert approved.json()["attendance"]["status"] == "approved"
        assert attended.status_code == 200
        assert attended.json()["attendance"]["status"] == "attended"
        assert attended.json()["attendance"]["checkedInBy"] == str(admin_user.user_id)

        async with session_factory() as session:
            user = await session.get(User, test_user.id)
        assert user.loyalty_points == 1
        assert user.reward_scarf is True

    @pytest.mark.asyncio
    async def test_illegal_action_is_conflict(self, test_client, async_session, test_user, test_tournament, admin_headers):
        attendance = await create_test_attendance(
            async_session, test_user, test_tournament, status=AttendanceStatus.ATTENDED
        )

        response = await test_client.post(
            f"/api/v1/admin/attendance/{attendance.id}/reject",
            headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Invalid status transition"

    @pytest.mark.asyncio
    async def test_reapprove_when_full_is_conflict(self, test_client, async_session, test_user, admin_headers):
        tournament = await create_test_tournament(async_session, capacity=1)
        rejected = await create_test_attendance(async_session, test_user, tournament, status=AttendanceStatus.REJECTED)
        rival = await create_test_user(async_session, email="rival@fanleague.io", phone_number="5550009999")
        await create_test_attendance(async_session, rival, tournament)

        response = await test_client.post(
            f"/api/v1/admin/attendance/{rejected.id}/approve",
            headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Tournament is full"}

    @pytest.mark.asyncio
    async def test_unknown_action(self, test_client, async_session, test_user, test_tournament, admin_headers):
        attendance = await create_test_attendance(async_session, test_user, test_tournament)

        response = await test_client.post(
            f"/api/v1/admin/attendance/{attendance.id}/cancel",
            headers=admin_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_record(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/v1/admin/attendance/00000000-0000-0000-0000-000000000000/approve",
            headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Attendance record not found"}


@pytest.mark.integration
class TestAdminLoyalty:

    @pytest.mark.asyncio
    async def test_add_points(self, test_client, test_user, admin_headers):
        response = await test_client.post(
            f"/api/v1/admin/loyalty/{test_user.id}/points",
            json={"points": 3, "reason": "Volunteer"},
            headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["credit"]["points"] == 3
        assert body["user"]["loyaltyPoints"] == 3
        assert body["user"]["rewards"] == {"scarf": True, "vipTicket": True, "jersey": False}

    @pytest.mark.asyncio
    async def test_zero_points_rejected(self, test_client, test_user, admin_headers):
        response = await test_client.post(
            f"/api/v1/admin/loyalty/{test_user.id}/points",
            json={"points": 0},
            headers=admin_headers
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_points_for_unknown_user(self, test_client, admin_headers):
        response = await test_client.post(
            "/api/v1/admin/loyalty/00000000-0000-0000-0000-000000000000/points",
            json={"points": 1},
            headers=admin_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_award_reward(self, test_client, test_user, admin_headers):
        response = await test_client.post(
            f"/api/v1/admin/loyalty/{test_user.id}/rewards",
            json={"reward": "jersey", "reason": "Giveaway"},
            headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["user"]["rewards"]["jersey"] is True
        assert response.json()["user"]["loyaltyPoints"] == 0

        dashboard = await test_client.get("/api/v1/dashboard/user-data", params={"userId": str(test_user.id)})
        assert dashboard.json()["loyalty"]["rewards"]["jersey"] is True

    @pytest.mark.asyncio
    async def test_unknown_reward(self, test_client, test_user, admin_headers):
        response = await test_client.post(
            f"/api/v1/admin/loyalty/{test_user.id}/rewards",
            json={"reward": "trophy"},
            headers=admin_headers
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestAdminAnalytics:

    @pytest.mark.asyncio
    async def test_analytics(self, test_client, async_session, test_user, admin_headers):
        tournament = await create_test_tournament(async_session, title="Summer Cup", capacity=8)
        await create_test_attendance(async_session, test_user, tournament)
        await create_attended_history(async_session, test_user, 3)

        response = await test_client.get("/api/v1/admin/analytics", headers=admin_headers)

        analytics = response.json()["analytics"]
        assert analytics["totalUsers"] == 2
        assert analytics["verifiedUsers"] == 0
        assert analytics["totalTournaments"] == 4
        assert analytics["upcomingTournaments"] == 1
        assert analytics["totalAttendance"] == 3
        assert analytics["totalRegistrations"] == 4
        assert {"location": "NYC", "count": 2} in analytics["usersByLocation"]
        summer = next(
            entry for entry in analytics["registrationsByTournament"]
            if entry["tournamentTitle"] == "Summer Cup"
        )
        assert summer["registrationCount"] == 1
        assert summer["capacity"] == 8
        tiers = {entry["tier"]: entry["count"] for entry in analytics["loyaltyDistribution"]}
        assert tiers == {"none": 1, "scarf": 0, "vipTicket": 1, "jersey": 0}

    @pytest.mark.asyncio
    async def test_export_requires_permission(self, test_client, admin_headers):
        response = await test_client.get("/api/v1/admin/analytics/export", headers=admin_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_export_csv(self, test_client, test_user, super_admin_headers):
        response = await test_client.get(
            "/api/v1/admin/analytics/export",
            params={"format": "csv"},
            headers=super_admin_headers
        )

        assert response.status_code == 200
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["section", "key", "value"]
        assert ["totals", "totalUsers", "2"] in rows

    @pytest.mark.asyncio
    async def test_audit_log_records_actions(self, test_client, test_user, admin_headers):
        await test_client.post(
            f"/api/v1/admin/loyalty/{test_user.id}/points",
            json={"points": 1},
            headers=admin_headers
        )

        response = await test_client.get("/api/v1/admin/audit-logs", headers=admin_headers)

        logs = response.json()["logs"]
        assert [log["action"] for log in logs] == ["update_loyalty_points"]
        assert logs[0]["details"]["resource_id"] == str(test_user.id)
