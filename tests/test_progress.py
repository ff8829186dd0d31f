from datetime import date, datetime, timedelta

from tests.conftest import auth
from vocavision.models import MasteryLevel, UserProgress


async def review(client, token, word_id, rating=4, **extra):
    return await client.post(
        "/api/progress/review",
        json={"wordId": word_id, "rating": rating, **extra},
        headers=auth(token),
    )


async def test_review_validation(client, user_token, make_word):
    word = await make_word()

    response = await client.post("/api/progress/review", json={"wordId": word.id}, headers=auth(user_token))
    assert response.status_code == 400

    response = await review(client, user_token, word.id, rating=6)
    assert response.status_code == 400
    assert response.json()["error"] == "Rating must be between 1 and 5"

    response = await review(client, user_token, 999)
    assert response.status_code == 404


async def test_first_review_creates_progress(client, user_token, make_word):
    word = await make_word()

    response = await review(client, user_token, word.id, rating=4, responseTime=1200, learningMethod="QUIZ")
    assert response.status_code == 200

    progress = response.json()["progress"]
    assert progress["repetitions"] == 1
    assert progress["interval"] == 1
    assert progress["masteryLevel"] == "LEARNING"
    assert progress["correctCount"] == 1
    assert progress["totalReviews"] == 1

    next_review = datetime.fromisoformat(response.json()["nextReviewDate"])
    assert next_review.date() == datetime.utcnow().date() + timedelta(days=1)


async def test_review_updates_user_stats_and_goal(client, make_user, make_word):
    yesterday = date.today() - timedelta(days=1)
    _, token = await make_user(last_active_date=yesterday, current_streak=3, longest_streak=3,
                               last_goal_reset=date.today(), daily_progress=4)
    word = await make_word()

    await review(client, token, word.id)

    response = await client.get("/api/progress", headers=auth(token))
    stats = response.json()["stats"]
    assert stats["currentStreak"] == 4
    assert stats["longestStreak"] == 4
    assert stats["lastActiveDate"] == date.today().isoformat()

    response = await client.get("/api/goals/daily", headers=auth(token))
    assert response.json()["dailyProgress"] == 5


async def test_failed_review_counts_incorrect(client, user_token, make_word):
    word = await make_word()
    await review(client, user_token, word.id, rating=5)

    response = await review(client, user_token, word.id, rating=1)
    progress = response.json()["progress"]
    assert progress["repetitions"] == 0
    assert progress["incorrectCount"] == 1
    assert progress["totalReviews"] == 2


async def test_mastered_words_are_counted(client, make_user, make_word, session_factory):
    user, token = await make_user()
    word = await make_word()
    async with session_factory() as session:
        session.add(UserProgress(
            user_id=user.id, word_id=word.id, ease_factor=2.6, interval=30, repetitions=4,
            next_review_date=datetime.utcnow(), mastery_level=MasteryLevel.FAMILIAR,
            correct_count=4, incorrect_count=0, total_reviews=4,
        ))
        await session.commit()

    response = await review(client, token, word.id, rating=5)
    assert response.json()["progress"]["masteryLevel"] == "MASTERED"

    response = await client.get("/api/auth/me", headers=auth(token))
    assert response.json()["totalWordsLearned"] == 1


async def test_progress_and_due_reviews(client, make_user, make_word, session_factory):
    user, token = await make_user()
    due_word = await make_word("due")
    later_word = await make_word("later")
    now = datetime.utcnow()
    async with session_factory() as session:
        session.add_all([
            UserProgress(user_id=user.id, word_id=due_word.id, next_review_date=now - timedelta(hours=1)),
            UserProgress(user_id=user.id, word_id=later_word.id, next_review_date=now + timedelta(days=3)),
        ])
        await session.commit()

    response = await client.get("/api/progress", headers=auth(token))
    assert [p["word"]["word"] for p in response.json()["progress"]] == ["due", "later"]

    response = await client.get("/api/progress/due", headers=auth(token))
    body = response.json()
    assert body["count"] == 1
    assert body["reviews"][0]["word"]["word"] == "due"
    assert body["reviews"][0]["word"]["visuals"] == []


async def test_study_session(client, user_token, make_user):
    response = await client.post("/api/progress/session/start", headers=auth(user_token))
    session_id = response.json()["session"]["id"]

    _, other_token = await make_user(email="other@example.com")
    response = await client.post(
        "/api/progress/session/end",
        json={"sessionId": session_id, "wordsStudied": 1},
        headers=auth(other_token),
    )
    assert response.status_code == 404

    response = await client.post(
        "/api/progress/session/end",
        json={"sessionId": session_id, "wordsStudied": 10, "wordsCorrect": 7},
        headers=auth(user_token),
    )
    session = response.json()["session"]
    assert session["endTime"] is not None
    assert session["duration"] >= 0
    assert session["wordsCorrect"] == 7


async def test_review_session_must_belong_to_caller(client, user_token, make_user, make_word):
    word = await make_word()
    response = await client.post("/api/progress/session/start", headers=auth(user_token))
    session_id = response.json()["session"]["id"]

    _, other_token = await make_user(email="other@example.com")
    response = await review(client, other_token, word.id, sessionId=session_id)
    assert response.status_code == 404
    assert response.json()["error"] == "Session not found"

    response = await review(client, user_token, word.id, sessionId=999)
    assert response.status_code == 404

    response = await review(client, user_token, word.id, sessionId=session_id)
    assert response.status_code == 200

    response = await client.get("/api/progress/history", headers=auth(user_token))
    assert response.json()["reviews"][0]["sessionId"] == session_id


async def test_review_history(client, user_token, make_word):
    first = await make_word("first")
    second = await make_word("second")
    await review(client, user_token, first.id)
    await review(client, user_token, second.id, rating=2)

    response = await client.get("/api/progress/history", headers=auth(user_token))
    reviews = response.json()["reviews"]
    assert [r["wordId"] for r in reviews] == [second.id, first.id]
    assert reviews[0]["rating"] == 2
    assert reviews[0]["learningMethod"] == "FLASHCARD"
    assert reviews[0]["nextReviewDate"] is not None
