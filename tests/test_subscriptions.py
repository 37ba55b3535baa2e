from datetime import datetime, timedelta

import pytest

from conftest import STUDENT_ID, TestingSessionLocal
from scheduler.tasks import expire_lapsed_subscriptions
from subscription.models import Subscription
from subscription.services import SubscriptionService


def add_subscription(db, status="active", expires_at=None, plan_type="monthly", amount=249):
    starts_at = datetime.utcnow() - timedelta(days=1)
    subscription = Subscription(
        user_id=STUDENT_ID,
        plan_type=plan_type,
        status=status,
        amount_kes=amount,
        payment_method="mpesa",
        starts_at=starts_at,
        expires_at=expires_at or SubscriptionService.compute_expiry(plan_type, starts_at),
    )
    db.add(subscription)
    db.commit()
    db.refresh(subscription)
    return subscription


def test_plans_are_public(client):
    response = client.get("/subscriptions/plans")

    assert response.status_code == 200
    body = response.json()
    assert body["currency"] == "KES"
    assert body["free_daily_question_limit"] == 5
    assert {plan: info["price"] for plan, info in body["plans"].items()} == {
        "monthly": 249,
        "quarterly": 599,
        "yearly": 1799,
    }
    assert body["plans"]["yearly"]["savings"] == "40%"


@pytest.mark.parametrize("plan_type,starts_at,expected", [
    ("monthly", datetime(2024, 1, 31, 9, 0), datetime(2024, 2, 29, 9, 0)),
    ("monthly", datetime(2023, 1, 31, 9, 0), datetime(2023, 2, 28, 9, 0)),
    ("quarterly", datetime(2024, 11, 30), datetime(2025, 2, 28)),
    ("yearly", datetime(2024, 2, 29), datetime(2025, 2, 28)),
])
def test_compute_expiry_follows_calendar(plan_type, starts_at, expected):
    assert SubscriptionService.compute_expiry(plan_type, starts_at) == expected


def test_compute_expiry_unknown_plan():
    with pytest.raises(ValueError):
        SubscriptionService.compute_expiry("weekly", datetime(2024, 1, 1))


def test_is_premium_uses_expiry():
    now = datetime(2025, 6, 1)
    running = Subscription(expires_at=now + timedelta(seconds=1))
    lapsed = Subscription(expires_at=now - timedelta(seconds=1))

    assert SubscriptionService.is_premium(running, now) is True
    assert SubscriptionService.is_premium(lapsed, now) is False
    assert SubscriptionService.is_premium(None, now) is False


def test_lapsed_active_subscription_is_not_premium(client, db, student_headers):
    add_subscription(db, expires_at=datetime.utcnow() - timedelta(minutes=1))

    body = client.get("/subscriptions/me", headers=student_headers).json()

    assert body["is_premium"] is False
    assert body["subscription"]["status"] == "active"


def test_latest_expiring_subscription_wins(client, db, student_headers):
    add_subscription(db)
    yearly = add_subscription(db, plan_type="yearly", amount=1799)
    add_subscription(db, status="pending", expires_at=datetime.utcnow() + timedelta(days=900))

    body = client.get("/subscriptions/me", headers=student_headers).json()

    assert body["is_premium"] is True
    assert body["subscription"]["id"] == yearly.id


def test_subscription_history(client, db, student_headers, other_headers):
    add_subscription(db)
    add_subscription(db, status="cancelled")

    assert len(client.get("/subscriptions/", headers=student_headers).json()) == 2
    assert client.get("/subscriptions/", headers=other_headers).json() == []


def test_expire_lapsed_subscriptions_job(db):
    lapsed = add_subscription(db, expires_at=datetime.utcnow() - timedelta(hours=1))
    running = add_subscription(db)
    pending = add_subscription(db, status="pending", expires_at=datetime.utcnow() - timedelta(hours=1))

    assert expire_lapsed_subscriptions(session_factory=TestingSessionLocal) == 1

    db.expire_all()
    assert db.get(Subscription, lapsed.id).status == "expired"
    assert db.get(Subscription, running.id).status == "active"
    assert db.get(Subscription, pending.id).status == "pending"
