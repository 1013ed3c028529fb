"""Tests for account, session and bearer-token handling."""

from backend.auth import hash_password, verify_password
from backend.settings import reset_settings

from conftest import sign_up


class TestPasswords:
    def test_hash_round_trip(self):
        stored = hash_password("correct horse")
        assert stored.startswith("scrypt$")
        assert verify_password("correct horse", stored) is True
        assert verify_password("wrong horse", stored) is False

    def test_same_password_gets_a_fresh_salt(self):
        assert hash_password("repeat") != hash_password("repeat")

    def test_garbage_hash_never_verifies(self):
        assert verify_password("anything", "not-a-hash") is False
        assert verify_password("anything", "bcrypt$abc$def") is False


class TestSignUp:
    def test_sign_up_returns_session(self, client):
        body = sign_up(client, email="  Alex@Example.com ")
        assert body["token"]
        assert body["user"]["email"] == "alex@example.com"
        assert body["user"]["display_name"] == "Alex"

    def test_display_name_defaults_to_email_prefix(self, client):
        response = client.post("/v1/auth/sign-up", json={"email": "jordan@example.com", "password": "pw-123456"})
        assert response.status_code == 200
        assert response.json()["user"]["display_name"] == "Jordan"

    def test_duplicate_email(self, client, session):
        response = client.post(
            "/v1/auth/sign-up",
            json={"email": "alex@example.com", "password": "another-pass"},
        )
        assert response.status_code == 400

    def test_invalid_email(self, client):
        response = client.post("/v1/auth/sign-up", json={"email": "not-an-email", "password": "pw"})
        assert response.status_code == 400

    def test_allow_list_blocks_other_emails(self, client, settings_env):
        settings_env.setenv("ALLOWED_EMAILS", "alex@example.com")
        reset_settings()
        blocked = client.post("/v1/auth/sign-up", json={"email": "eve@example.com", "password": "pw-123456"})
        assert blocked.status_code == 403
        sign_up(client)


class TestSignIn:
    def test_valid_credentials(self, client, session):
        response = client.post("/v1/auth/sign-in", json={"email": "alex@example.com", "password": "s3cret-pass"})
        assert response.status_code == 200
        assert response.json()["token"] != session["token"]

    def test_wrong_password(self, client, session):
        response = client.post("/v1/auth/sign-in", json={"email": "alex@example.com", "password": "nope"})
        assert response.status_code == 401

    def test_unknown_email(self, client):
        response = client.post("/v1/auth/sign-in", json={"email": "ghost@example.com", "password": "nope"})
        assert response.status_code == 401


class TestSessions:
    def test_me_requires_a_token(self, client):
        assert client.get("/v1/auth/me").status_code == 401
        assert client.get("/v1/auth/me", headers={"Authorization": "Token abc"}).status_code == 401
        assert client.get("/v1/auth/me", headers={"Authorization": "Bearer unknown"}).status_code == 401

    def test_me_returns_profile(self, client, auth_headers):
        response = client.get("/v1/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["email"] == "alex@example.com"

    def test_local_sign_out_keeps_other_sessions(self, client, session, auth_headers):
        second = client.post("/v1/auth/sign-in", json={"email": "alex@example.com", "password": "s3cret-pass"})
        second_headers = {"Authorization": f"Bearer {second.json()['token']}"}

        response = client.post("/v1/auth/sign-out?scope=local", headers=auth_headers)
        assert response.json()["revoked"] == 1
        assert client.get("/v1/auth/me", headers=auth_headers).status_code == 401
        assert client.get("/v1/auth/me", headers=second_headers).status_code == 200

    def test_global_sign_out_revokes_everything(self, client, session, auth_headers):
        client.post("/v1/auth/sign-in", json={"email": "alex@example.com", "password": "s3cret-pass"})
        response = client.post("/v1/auth/sign-out", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["revoked"] == 2
        assert client.get("/v1/auth/me", headers=auth_headers).status_code == 401
