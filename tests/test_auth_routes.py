from datetime import datetime

from app.dependencies import get_authenticator
from app.main import app
from app.services.auth import OtpAuthenticator
from app.services.tokens import SessionTokenIssuer

ADMIN = "a@x.com"


def test_send_otp_to_admin(client, store, notifier):
    response = client.post("/api/send-otp", json={"email": ADMIN})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "OTP sent successfully"
    assert body["expires_in_seconds"] == 60
    assert "otp" not in body
    assert store.get(ADMIN).code == "123456"
    assert len(notifier.sent) == 1


def test_send_otp_to_other_identity_is_unauthorized(client, store, notifier):
    response = client.post("/api/send-otp", json={"email": "b@y.com"})

    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}
    assert store.get("b@y.com") is None
    assert notifier.sent == []


def test_send_otp_without_email_is_unauthorized(client):
    assert client.post("/api/send-otp", json={}).status_code == 401
    assert client.post("/api/send-otp", json={"email": 42}).status_code == 401


def test_send_otp_delivery_failure(client, store, notifier):
    notifier.error = "Failed to send OTP email"

    response = client.post("/api/send-otp", json={"email": ADMIN})

    assert response.status_code == 500
    assert response.json() == {
        "message": "Error sending email",
        "error": "Failed to send OTP email",
    }
    assert store.get(ADMIN) is not None


def test_verify_otp_issues_token_once(client, clock):
    client.post("/api/send-otp", json={"email": ADMIN})
    clock.advance(30)

    response = client.post("/api/verify-otp", json={"email": ADMIN, "otp": "123456"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "OTP verified successfully"
    assert body["token_type"] == "bearer"
    assert body["expires_in_seconds"] == 1800
    assert body["token"]

    again = client.post("/api/verify-otp", json={"email": ADMIN, "otp": "123456"})
    assert again.status_code == 400
    assert again.json() == {"message": "Invalid OTP or OTP expired"}


def test_verify_otp_rejects_numeric_code(client):
    client.post("/api/send-otp", json={"email": ADMIN})

    response = client.post("/api/verify-otp", json={"email": ADMIN, "otp": 123456})
    assert response.status_code == 400

    response = client.post("/api/verify-otp", json={"email": ADMIN, "otp": "123456"})
    assert response.status_code == 200


def test_verify_otp_expired(client, clock):
    client.post("/api/send-otp", json={"email": ADMIN})
    clock.advance(61)

    response = client.post("/api/verify-otp", json={"email": ADMIN, "otp": "123456"})
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid OTP or OTP expired"}


def test_verify_otp_with_empty_body(client):
    response = client.post("/api/verify-otp", json={})
    assert response.status_code == 400


def test_logout(client):
    response = client.post("/api/logout")
    assert response.status_code == 200
    assert response.json() == {"message": "Logged out successfully"}


def test_session_reports_identity(client, clock):
    client.post("/api/send-otp", json={"email": ADMIN})
    token = client.post(
        "/api/verify-otp", json={"email": ADMIN, "otp": "123456"}
    ).json()["token"]

    response = client.get("/api/session", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    body = response.json()
    assert body["email"] == ADMIN
    expires_at = datetime.fromisoformat(body["expires_at"].replace("Z", "+00:00"))
    assert abs((expires_at - clock.now).total_seconds() - 1800) <= 1


def test_session_rejects_missing_and_bad_tokens(client):
    assert client.get("/api/session").status_code == 401
    response = client.get("/api/session", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json() == {"message": "Invalid token"}
    response = client.get("/api/session", headers={"Authorization": "Basic abc"})
    assert response.json() == {"message": "Invalid Authorization header"}


def test_session_rejects_expired_token(client, clock, auth_headers):
    clock.advance(31 * 60)
    response = client.get("/api/session", headers=auth_headers)
    assert response.status_code == 401
    assert response.json() == {"message": "Token has expired"}


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
    assert client.get("/").json() == {"status": "Backend running"}


def test_send_otp_without_body_is_unauthorized(client, store, notifier):
    response = client.post("/api/send-otp")

    assert response.status_code == 401
    assert response.json() == {"message": "Unauthorized"}
    assert len(store) == 0
    assert notifier.sent == []


def test_verify_otp_without_body_is_invalid(client):
    client.post("/api/send-otp", json={"email": ADMIN})

    response = client.post("/api/verify-otp")

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid OTP or OTP expired"}
    # The outstanding challenge is still usable.
    response = client.post("/api/verify-otp", json={"email": ADMIN, "otp": "123456"})
    assert response.status_code == 200


def test_verify_otp_with_unconfigured_secret_keeps_code(client, store, notifier, clock):
    auth = OtpAuthenticator(
        admin_identity=ADMIN,
        store=store,
        notifier=notifier,
        issuer=SessionTokenIssuer(secret="", clock=clock),
        clock=clock,
        code_factory=lambda: "123456",
    )
    app.dependency_overrides[get_authenticator] = lambda: auth
    client.post("/api/send-otp", json={"email": ADMIN})

    response = client.post("/api/verify-otp", json={"email": ADMIN, "otp": "123456"})

    assert response.status_code == 500
    assert response.json() == {"message": "JWT secret is not configured"}
    assert store.get(ADMIN) is not None
