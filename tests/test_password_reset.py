from realty.models.password_reset import PasswordReset
from realty.services.password_reset import FORGOT_PASSWORD_MESSAGE


def _token_from(link: str) -> str:
    return link.split("token=", 1)[1]


def test_forgot_password_same_message_for_unknown_email(client, sent_emails):
    r = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    assert r.status_code == 200
    assert r.json() == {"message": FORGOT_PASSWORD_MESSAGE}
    sent_emails.assert_not_called()


def test_reset_flow(client, db, landlord, sent_emails):
    user, _ = landlord
    r = client.post("/auth/forgot-password", json={"email": user.email})
    assert r.json()["message"] == FORGOT_PASSWORD_MESSAGE
    token = _token_from(r.json()["resetLink"])
    sent_emails.assert_called_once()

    # Only the hash is stored
    assert db.query(PasswordReset).filter(PasswordReset.token == token).count() == 0

    r = client.get("/auth/verify-reset-token", params={"token": token})
    assert r.json() == {"valid": True, "email": user.email}

    r = client.post("/auth/reset-password", json={"token": token, "password": "Brand#New99"})
    assert r.status_code == 200

    assert client.post("/auth/login", json={"email": user.email, "password": "Brand#New99"}).status_code == 200

    # Single use
    r = client.post("/auth/reset-password", json={"token": token, "password": "Other#New99"})
    assert r.status_code == 400
    r = client.get("/auth/verify-reset-token", params={"token": token})
    assert r.status_code == 400
    assert r.json()["valid"] is False


def test_reset_rejects_weak_password(client, landlord):
    user, _ = landlord
    token = _token_from(client.post("/auth/forgot-password", json={"email": user.email}).json()["resetLink"])
    r = client.post("/auth/reset-password", json={"token": token, "password": "short"})
    assert r.status_code == 400
