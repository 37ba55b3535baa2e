from datetime import timedelta

from jose import jwt

from auth.services import AuthService
from config import settings
from conftest import OTHER_ID, STUDENT_ID, make_token
from payment.models import PaymentTransaction


def add_transaction(db, user_id=STUDENT_ID, status="completed", payment_method="mpesa"):
    db.add(PaymentTransaction(
        user_id=user_id,
        plan_type="monthly",
        amount_kes=249,
        payment_method=payment_method,
        checkout_request_id=f"ws_CO_{user_id[:4]}_{status}_{payment_method}",
        status=status,
    ))
    db.commit()


def test_admin_payments_requires_admin(client, db, student_headers, admin_headers):
    add_transaction(db)
    add_transaction(db, user_id=OTHER_ID, status="pending")
    add_transaction(db, user_id=OTHER_ID, status="initiated", payment_method="paypal")

    assert client.get("/admin/payments", headers=student_headers).status_code == 403

    everything = client.get("/admin/payments", headers=admin_headers)
    assert everything.status_code == 200
    assert len(everything.json()) == 3

    pending = client.get("/admin/payments", params={"status": "pending"}, headers=admin_headers).json()
    assert [t["user_id"] for t in pending] == [OTHER_ID]

    paypal = client.get("/admin/payments", params={"payment_method": "paypal"}, headers=admin_headers).json()
    assert [t["status"] for t in paypal] == ["initiated"]


def test_admin_subscriptions_requires_admin(client, teacher_headers, admin_headers):
    assert client.get("/admin/subscriptions", headers=teacher_headers).status_code == 403
    assert client.get("/admin/subscriptions", headers=admin_headers).json() == []


def test_options_answers_any_path(client):
    response = client.options("/payments/mpesa/stk-push")

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert "authorization" in response.headers["access-control-allow-headers"]


def test_validation_errors_are_400(client, student_headers):
    response = client.post("/payments/mpesa/stk-push", json={"amount": 249}, headers=student_headers)

    assert response.status_code == 400
    assert any(err["loc"][-1] == "phone_number" for err in response.json()["detail"])


def test_auth_me_for_unknown_profile(client, student_headers):
    body = client.get("/auth/me", headers=student_headers).json()

    assert body["user_id"] == STUDENT_ID
    assert body["role"] == "student"
    assert body["is_premium"] is False


def test_token_checks(client):
    wrong_audience = jwt.encode({"sub": STUDENT_ID, "aud": "someone-else"}, settings.JWT_SECRET, algorithm="HS256")
    expired = make_token(STUDENT_ID, expires_delta=timedelta(seconds=-30))

    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/auth/me", headers={"Authorization": f"Bearer {wrong_audience}"}).status_code == 401
    assert AuthService.decode_access_token(expired) is None


def test_root(client):
    assert client.get("/").json() == {"message": "Welcome to HappyLearn Backend!"}
