import pytest
from sqlalchemy import select

from app.api.v1.gamification import claim_reward
from app.core.errors import ValidationError
from app.models.gamification import Progress, Reward
from app.models.user import User, UserRole
from app.schemas.gamification import ClaimReward
from tests.conftest import auth_headers

API = "/api/v1/gamification"


def _seed_reward(run, points_required=50):
    async def _insert(session):
        reward = Reward(description="Badge", points_required=points_required)
        session.add(reward)
        await session.commit()
        return reward.id
    return run(_insert)


def test_progress_missing_is_404(client, create_user):
    user = create_user()
    assert client.get(f"{API}/progress", headers=auth_headers(user)).status_code == 404


def test_update_progress_accumulates(client, create_user):
    user = create_user()
    headers = auth_headers(user)

    client.post(f"{API}/updateProgress", headers=headers, json={"taskCompleted": "meditate", "pointsEarned": 30})
    resp = client.post(f"{API}/updateProgress", headers=headers, json={"taskCompleted": "journal", "pointsEarned": 25})
    assert resp.status_code == 200
    assert resp.json()["tasksCompleted"] == ["meditate", "journal"]
    assert resp.json()["points"] == 55

    assert client.get(f"{API}/progress", headers=headers).json()["points"] == 55


def test_negative_points_rejected(client, create_user):
    user = create_user()
    resp = client.post(
        f"{API}/updateProgress",
        headers=auth_headers(user),
        json={"taskCompleted": "x", "pointsEarned": -5},
    )
    assert resp.status_code == 400


def test_claim_reward(client, create_user, run):
    user = create_user()
    headers = auth_headers(user)
    reward_id = _seed_reward(run, points_required=50)

    assert client.post(f"{API}/claimReward", headers=headers, json={"rewardId": reward_id}).status_code == 400

    client.post(f"{API}/updateProgress", headers=headers, json={"taskCompleted": "walk", "pointsEarned": 60})
    resp = client.post(f"{API}/claimReward", headers=headers, json={"rewardId": reward_id})
    assert resp.status_code == 200
    assert client.get(f"{API}/progress", headers=headers).json()["points"] == 10

    assert [r["pointsRequired"] for r in client.get(f"{API}/rewards", headers=headers).json()] == [50]


def test_claim_unknown_reward(client, create_user):
    user = create_user()
    resp = client.post(f"{API}/claimReward", headers=auth_headers(user), json={"rewardId": 42})
    assert resp.status_code == 404


def test_challenges_create_requires_moderator(client, create_user):
    user = create_user()
    moderator = create_user(email="mod@example.com", role=UserRole.moderator)
    challenge = {"description": "Meditate 5 times", "points": 20, "condition": "meditation_sessions >= 5"}

    assert client.post("/api/v1/challenges", headers=auth_headers(user), json=challenge).status_code == 403
    resp = client.post("/api/v1/challenges", headers=auth_headers(moderator), json=challenge)
    assert resp.status_code == 201
    assert resp.json()["condition"] == "meditation_sessions >= 5"

    listed = client.get("/api/v1/challenges", headers=auth_headers(user)).json()
    assert [c["description"] for c in listed] == ["Meditate 5 times"]


def test_claim_reward_debits_stored_balance_not_loaded_copy(create_user, run, session_maker):
    user = create_user()
    reward_id = _seed_reward(run, points_required=80)

    async def _scenario(session):
        session.add(Progress(user_id=user.id, points=100, tasks_completed=[]))
        await session.commit()
        owner = await session.get(User, user.id)
        await session.commit()

        # Another request spends the points after this session loaded them
        async with session_maker() as other:
            await claim_reward(ClaimReward(reward_id=reward_id), other, await other.get(User, user.id))

        with pytest.raises(ValidationError):
            await claim_reward(ClaimReward(reward_id=reward_id), session, owner)
        await session.rollback()

        async with session_maker() as fresh:
            result = await fresh.execute(select(Progress.points).where(Progress.user_id == user.id))
            return result.scalar_one()

    assert run(_scenario) == 20
