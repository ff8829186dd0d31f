from datetime import date, timedelta

from tests.conftest import auth


async def test_bookmark_lifecycle(client, user_token, make_word):
    word = await make_word("candid")
    headers = auth(user_token)

    response = await client.post("/api/bookmarks", json={}, headers=headers)
    assert response.status_code == 400

    response = await client.post("/api/bookmarks", json={"wordId": 999}, headers=headers)
    assert response.status_code == 404

    response = await client.post("/api/bookmarks", json={"wordId": word.id, "notes": "exam"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["bookmark"]["notes"] == "exam"

    response = await client.post("/api/bookmarks", json={"wordId": word.id}, headers=headers)
    assert response.status_code == 409

    response = await client.patch(f"/api/bookmarks/{word.id}", json={"notes": "review friday"}, headers=headers)
    assert response.json()["bookmark"]["notes"] == "review friday"

    response = await client.get("/api/bookmarks", headers=headers)
    bookmarks = response.json()["bookmarks"]
    assert len(bookmarks) == 1
    assert bookmarks[0]["word"]["word"] == "candid"

    response = await client.delete(f"/api/bookmarks/{word.id}", headers=headers)
    assert response.status_code == 200

    response = await client.delete(f"/api/bookmarks/{word.id}", headers=headers)
    assert response.status_code == 404

    response = await client.patch(f"/api/bookmarks/{word.id}", json={"notes": "x"}, headers=headers)
    assert response.status_code == 404


async def test_bookmarks_are_per_user(client, user_token, make_user, make_word):
    word = await make_word()
    await client.post("/api/bookmarks", json={"wordId": word.id}, headers=auth(user_token))

    _, other = await make_user(email="other@example.com")
    response = await client.get("/api/bookmarks", headers=auth(other))
    assert response.json()["bookmarks"] == []


async def test_daily_goal_defaults(client, user_token):
    response = await client.get("/api/goals/daily", headers=auth(user_token))
    assert response.json() == {"dailyGoal": 20, "dailyProgress": 0, "completed": False, "percentage": 0}


async def test_set_daily_goal(client, user_token):
    headers = auth(user_token)
    for goal in (0, 101, None):
        response = await client.put("/api/goals/daily", json={"goal": goal}, headers=headers)
        assert response.status_code == 400

    response = await client.put("/api/goals/daily", json={"goal": 10}, headers=headers)
    assert response.json() == {"dailyGoal": 10}


async def test_daily_goal_progress(client, user_token):
    headers = auth(user_token)
    await client.put("/api/goals/daily", json={"goal": 10}, headers=headers)

    response = await client.post("/api/goals/daily/progress", json={"increment": 5}, headers=headers)
    assert response.json() == {"dailyProgress": 5, "dailyGoal": 10, "completed": False}

    response = await client.post("/api/goals/daily/progress", json={}, headers=headers)
    assert response.json()["dailyProgress"] == 6

    response = await client.post("/api/goals/daily/progress", json={"increment": 20}, headers=headers)
    assert response.json()["completed"] is True

    response = await client.get("/api/goals/daily", headers=headers)
    assert response.json()["percentage"] == 100


async def test_daily_goal_resets_next_day(client, make_user):
    _, token = await make_user(daily_progress=7, last_goal_reset=date.today() - timedelta(days=1))

    response = await client.get("/api/goals/daily", headers=auth(token))
    assert response.json()["dailyProgress"] == 0
