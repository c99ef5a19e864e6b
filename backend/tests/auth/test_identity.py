"""Tests for session resolution, principal building, and the auth routes."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from supabase import AuthError

from threadchat.auth.identity import SupabaseIdentityProvider, build_principal, display_name
from tests.fixtures import BOB


def _supabase_client(user=None, error: Exception | None = None) -> MagicMock:
    client = MagicMock()
    client.auth.get_user = AsyncMock(
        return_value=SimpleNamespace(user=user), side_effect=error
    )
    client.auth.admin.sign_out = AsyncMock()
    return client


def _user(email: str | None = "carol@example.com", **metadata) -> SimpleNamespace:
    return SimpleNamespace(id="user-carol", email=email, user_metadata=metadata)


class TestBuildPrincipal:
    def test_plain_user(self):
        principal = build_principal("u1", "dana@example.com", {"full_name": "Dana"})
        assert principal.user_id == "u1"
        assert principal.email == "dana@example.com"
        assert principal.name == "Dana"
        assert principal.is_admin is False

    def test_admin_email_match_ignores_case(self):
        principal = build_principal(
            "u1", "Ops@Example.com", None, admin_emails=frozenset({"ops@example.com"})
        )
        assert principal.is_admin is True

    def test_missing_email_is_never_admin(self):
        principal = build_principal("u1", None, None, admin_emails=frozenset({""}))
        assert principal.is_admin is False


class TestDisplayName:
    def test_first_known_key_wins(self):
        assert display_name({"name": "B", "full_name": "A"}) == "A"

    def test_blank_values_are_skipped(self):
        assert display_name({"full_name": "  ", "user_name": "dana"}) == "dana"

    def test_no_metadata(self):
        assert display_name(None) is None
        assert display_name({"avatar_url": "x"}) is None


class TestSupabaseIdentityProvider:
    async def test_resolves_user(self):
        client = _supabase_client(user=_user(full_name="Carol"))
        provider = SupabaseIdentityProvider(client, frozenset({"carol@example.com"}))

        principal = await provider.resolve("jwt")

        client.auth.get_user.assert_awaited_once_with("jwt")
        assert principal.user_id == "user-carol"
        assert principal.name == "Carol"
        assert principal.is_admin is True

    async def test_auth_error_means_no_session(self):
        client = _supabase_client(error=AuthError("invalid JWT", None))
        assert await SupabaseIdentityProvider(client).resolve("expired") is None

    async def test_no_user_in_response(self):
        client = _supabase_client(user=None)
        assert await SupabaseIdentityProvider(client).resolve("jwt") is None

    async def test_sign_out_forwards_token(self):
        client = _supabase_client()
        await SupabaseIdentityProvider(client).sign_out("jwt")
        client.auth.admin.sign_out.assert_awaited_once_with("jwt")

    async def test_sign_out_failure_is_logged_not_raised(self, caplog):
        client = _supabase_client()
        client.auth.admin.sign_out.side_effect = AuthError("session missing", None)
        await SupabaseIdentityProvider(client).sign_out("jwt")
        assert "Sign-out failed" in caplog.text


class TestAuthRoutes:
    async def test_me(self, client):
        resp = await client.get("/api/auth/me")
        assert resp.status_code == 200
        assert resp.json() == {
            "user": {"id": "user-alice", "email": "alice@example.com", "name": "Alice"}
        }

    async def test_me_without_session(self, client):
        resp = await client.get("/api/auth/me", headers={"Authorization": ""})
        assert resp.status_code == 401
        assert resp.json() == {"user": None}

    async def test_session_cookie_is_accepted(self, client):
        resp = await client.get(
            "/api/auth/me",
            headers={"Authorization": "", "Cookie": f"sb-access-token=token-{BOB.user_id}"},
        )
        assert resp.status_code == 200
        assert resp.json()["user"]["id"] == BOB.user_id

    async def test_bearer_header_wins_over_cookie(self, client):
        resp = await client.get(
            "/api/auth/me",
            headers={"Cookie": f"sb-access-token=token-{BOB.user_id}"},
        )
        assert resp.json()["user"]["id"] == "user-alice"

    async def test_logout_signs_out(self, client, identity):
        resp = await client.post("/api/auth/logout")
        assert resp.status_code == 204
        assert identity.signed_out == ["token-user-alice"]

    async def test_logout_without_session(self, client):
        resp = await client.post("/api/auth/logout", headers={"Authorization": ""})
        assert resp.status_code == 204
