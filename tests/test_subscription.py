from datetime import datetime, timedelta

from tests.conftest import auth
from vocavision.models import SubscriptionStatus, UserProgress


async def test_subscription_status(client, user_token):
    response = await client.get("/api/subscription", headers=auth(user_token))
    body = response.json()
    assert body["subscriptionStatus"] == "TRIAL"
    assert body["isActive"] is True


async def test_cancel_subscription(client, user_token):
    response = await client.post("/api/subscription/cancel", headers=auth(user_token))
    assert response.status_code == 200
    assert response.json()["subscription"]["subscriptionStatus"] == "CANCELLED"

    response = await client.post("/api/subscription/cancel", headers=auth(user_token))
    assert response.status_code == 404


async def test_feed_requires_subscription(client, make_user):
    _, token = await make_user(status=SubscriptionStatus.FREE)

    response = await client.get("/api/learning/feed", headers=auth(token))
    assert response.status_code == 403
    assert response.json()["subscriptionStatus"] == "FREE"


async def test_cancelled_subscription_keeps_access_until_end(client, make_user):
    _, token = await make_user(status=SubscriptionStatus.CANCELLED,
                               subscription_end=datetime.utcnow() + timedelta(days=3))

    response = await client.get("/api/learning/feed", headers=auth(token))
    assert response.status_code == 200


async def test_feed_puts_due_reviews_first(client, make_user, make_word, session_factory):
    user, token = await make_user(status=SubscriptionStatus.ACTIVE, daily_goal=3)
    due = await make_word("due", frequency=1)
    await make_word("popular", frequency=99)
    await make_word("niche", frequency=10)
    scheduled = await make_word("scheduled", frequency=50)
    async with session_factory() as session:
        session.add_all([
            UserProgress(user_id=user.id, word_id=due.id, next_review_date=datetime.utcnow() - timedelta(days=1)),
            UserProgress(user_id=user.id, word_id=scheduled.id,
                         next_review_date=datetime.utcnow() + timedelta(days=5)),
        ])
        await session.commit()

    response = await client.get("/api/learning/feed", headers=auth(token))
    body = response.json()
    assert [(i["type"], i["word"]["word"]) for i in body["items"]] == [
        ("review", "due"), ("new", "popular"), ("new", "niche"),
    ]
    assert body["dueCount"] == 1
    assert body["newCount"] == 2

    response = await client.get("/api/learning/feed", params={"limit": 1}, headers=auth(token))
    assert [i["word"]["word"] for i in response.json()["items"]] == ["due"]


async def test_learning_methods(client, user_token, make_word):
    word = await make_word("eloquent")

    response = await client.get(f"/api/learning/words/{word.id}/methods", headers=auth(user_token))
    body = response.json()
    assert body["word"]["word"] == "eloquent"
    assert body["methods"]["mnemonics"] == []
    assert body["methods"]["etymology"] is None

    response = await client.get("/api/learning/words/999/methods", headers=auth(user_token))
    assert response.status_code == 404


async def test_trial_access_ignores_trial_end(client, make_user):
    _, token = await make_user(status=SubscriptionStatus.TRIAL, trial_end=datetime.utcnow() - timedelta(days=1))

    response = await client.get("/api/learning/feed", headers=auth(token))
    assert response.status_code == 200

    response = await client.get("/api/subscription", headers=auth(token))
    assert response.json()["isActive"] is True
