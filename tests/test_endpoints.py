# tests/test_endpoints.py

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from sqlalchemy.exc import SQLAlchemyError

from app.crud import loyalty as crud_loyalty
from app.models.catalog import Product

from conftest import ACCOUNT_ID


# --- Аутентификация ---

async def test_points_require_token(client):
    response = await client.get("/api/v1/points/me")
    assert response.status_code == 401


async def test_invalid_token_is_rejected(client):
    response = await client.get("/api/v1/points/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Could not validate credentials"


# --- Баллы ---

async def test_award_points_endpoint(client, auth_headers, redis_mock):
    response = await client.post(
        "/api/v1/points/award",
        json={"action_type": "share_link_created", "action_details": {"link_id": 7}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "points_awarded": 20,
        "action_type": "share_link_created",
        "total_points": 20,
        "tier": "bronze",
    }
    channel, payload = redis_mock.publish.await_args.args
    assert json.loads(payload)["reason"] == "points_awarded"


async def test_award_unknown_action(client, auth_headers):
    response = await client.post("/api/v1/points/award", json={"action_type": "hacked"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"error": "invalid_action", "detail": "Invalid action type"}


async def test_persistence_failure_is_opaque(client, auth_headers, mocker):
    mocker.patch(
        "app.crud.loyalty.create_history_entry",
        side_effect=SQLAlchemyError("relation points_history does not exist"),
    )

    response = await client.post("/api/v1/points/award", json={"action_type": "product_added"}, headers=auth_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "persistence_failure"
    assert "points_history" not in body["detail"]


async def test_points_summary_and_history(client, auth_headers, db_session):
    for _ in range(3):
        await client.post("/api/v1/points/award", json={"action_type": "catalog_shared"}, headers=auth_headers)

    summary = (await client.get("/api/v1/points/me", headers=auth_headers)).json()
    assert summary == {"total_points": 45, "tier": "bronze", "next_tier": "silver", "points_to_next_tier": 455}

    history = (await client.get("/api/v1/points/me/history?size=2", headers=auth_headers)).json()
    assert history["total_items"] == 3
    assert len(history["items"]) == 2
    assert history["items"][0]["expired"] is False

    expiring = (await client.get("/api/v1/points/me/expiring?days=7", headers=auth_headers)).json()
    assert expiring == {"days": 7, "points_expiring": 0}


# --- Награды ---

async def test_rewards_catalog_hides_inactive(client, auth_headers, make_reward):
    make_reward(points_cost=500, name="Expensive")
    make_reward(points_cost=100, name="Cheap")
    make_reward(points_cost=50, name="Retired", is_active=False)

    response = await client.get("/api/v1/rewards", headers=auth_headers)

    assert [reward["name"] for reward in response.json()] == ["Cheap", "Expensive"]


async def test_redeem_insufficient_points_is_409(client, auth_headers, make_balance, make_reward):
    make_balance(points=150)
    reward_id = make_reward(points_cost=200).id

    response = await client.post("/api/v1/rewards/redeem", json={"reward_id": reward_id}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": "insufficient_points",
        "detail": "Insufficient points",
        "required": 200,
        "available": 150,
    }


async def test_redeem_unknown_reward_is_404(client, auth_headers, make_balance):
    make_balance(points=1000)

    response = await client.post("/api/v1/rewards/redeem", json={"reward_id": 404}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"] == "reward_not_found"


async def test_redeem_success(client, auth_headers, make_balance, make_reward, redis_mock):
    make_balance(points=700)
    reward_id = make_reward(points_cost=200).id

    response = await client.post("/api/v1/rewards/redeem", json={"reward_id": reward_id}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["remaining_points"] == 500
    assert body["tier"] == "silver"
    assert body["redemption"]["status"] == "applied"
    redis_mock.publish.assert_awaited_once()

    mine = (await client.get("/api/v1/rewards/redemptions/me", headers=auth_headers)).json()
    assert len(mine) == 1


# --- Курс золота ---

async def test_gold_rate_recalculation(client, auth_headers, db_session):
    db_session.add(Product(account_id=ACCOUNT_ID, name="Bangle", net_weight=Decimal("10"), purity_fraction_used=Decimal("18")))
    db_session.commit()

    response = await client.post("/api/v1/catalog/gold-rate", json={"rate_per_gram": "6000.00"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"rate_per_gram": "6000.00", "updated_count": 1, "skipped_count": 0, "failed_count": 0}

    current = (await client.get("/api/v1/catalog/gold-rate", headers=auth_headers)).json()
    assert Decimal(current["rate_per_gram"]) == Decimal("6000")
    assert current["updated_at"] is not None


async def test_gold_rate_out_of_range(client, auth_headers):
    response = await client.post("/api/v1/catalog/gold-rate", json={"rate_per_gram": "500"}, headers=auth_headers)
    assert response.status_code == 422


async def test_gold_rate_before_first_update(client, auth_headers):
    response = await client.get("/api/v1/catalog/gold-rate", headers=auth_headers)
    assert response.json() == {"rate_per_gram": None, "updated_at": None}


# --- Внутренние задачи ---

async def test_internal_job_requires_secret(client):
    response = await client.post("/internal/jobs/expire-points", headers={"X-Scheduler-Secret": "wrong"})
    assert response.status_code == 401


async def test_internal_job_runs_sweep(client, db_session, make_balance):
    make_balance(points=30)
    now = datetime.now(timezone.utc)
    crud_loyalty.create_history_entry(db_session, ACCOUNT_ID, 30, "catalog_shared", expires_at=now - timedelta(hours=1))
    db_session.commit()

    response = await client.post("/internal/jobs/expire-points", headers={"X-Scheduler-Secret": "scheduler-test-secret"})

    assert response.status_code == 200
    assert response.json() == {"expired_count": 1, "affected_accounts": 1, "failed_accounts": 0}


# --- Админка ---

async def test_admin_routes_forbidden_for_vendor(client, auth_headers):
    response = await client.get("/api/v1/admin/rewards", headers=auth_headers)
    assert response.status_code == 403


async def test_admin_reward_lifecycle(client, admin_auth_headers):
    created = await client.post(
        "/api/v1/admin/rewards",
        json={"name": "Premium support", "points_cost": 800, "reward_type": "premium_support", "reward_value": {"duration_days": 30}},
        headers=admin_auth_headers,
    )
    assert created.status_code == 201
    reward_id = created.json()["id"]

    toggled = await client.post(f"/api/v1/admin/rewards/{reward_id}/toggle", headers=admin_auth_headers)
    assert toggled.json()["is_active"] is False

    deleted = await client.delete(f"/api/v1/admin/rewards/{reward_id}", headers=admin_auth_headers)
    assert deleted.status_code == 204


async def test_admin_reward_validation(client, admin_auth_headers):
    response = await client.post(
        "/api/v1/admin/rewards",
        json={"name": "Broken", "points_cost": 100, "reward_type": "extra_products", "reward_value": {}},
        headers=admin_auth_headers,
    )
    assert response.status_code == 422


async def test_admin_reward_rejects_boolean_amount(client, admin_auth_headers):
    response = await client.post(
        "/api/v1/admin/rewards",
        json={"name": "Sneaky", "points_cost": 100, "reward_type": "extra_products", "reward_value": {"amount": True}},
        headers=admin_auth_headers,
    )
    assert response.status_code == 422


async def test_admin_update_keeps_reward_redeemable(client, admin_auth_headers, auth_headers, make_balance, make_reward):
    """Пустое reward_value у квотной награды не сохраняется, и обмен продолжает работать."""
    make_balance(points=500)
    reward_id = make_reward(points_cost=100, reward_type="extra_products", reward_value={"amount": 50}).id

    patched = await client.patch(
        f"/api/v1/admin/rewards/{reward_id}", json={"reward_value": {}}, headers=admin_auth_headers,
    )
    assert patched.status_code == 422

    renamed = await client.patch(
        f"/api/v1/admin/rewards/{reward_id}", json={"name": "50 more slots"}, headers=admin_auth_headers,
    )
    assert renamed.status_code == 200
    assert renamed.json()["reward_value"] == {"amount": 50}

    redeemed = await client.post("/api/v1/rewards/redeem", json={"reward_id": reward_id}, headers=auth_headers)
    assert redeemed.status_code == 200
    assert redeemed.json()["redemption"]["status"] == "applied"


async def test_broken_reward_is_reported_as_unavailable(client, auth_headers, make_balance, make_reward):
    make_balance(points=500)
    reward_id = make_reward(points_cost=100, reward_type="extra_share_links", reward_value={}).id

    response = await client.post("/api/v1/rewards/redeem", json={"reward_id": reward_id}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "reward_unavailable"


async def test_admin_adjust_points(client, admin_auth_headers, make_balance):
    make_balance(points=100)

    added = await client.post(
        f"/api/v1/admin/points/{ACCOUNT_ID}/adjust",
        json={"points": 450, "comment": "Trade show bonus"},
        headers=admin_auth_headers,
    )
    assert added.json() == {"status": "ok", "new_balance": 550, "tier": "silver"}

    too_much = await client.post(
        f"/api/v1/admin/points/{ACCOUNT_ID}/adjust",
        json={"points": -1000, "comment": "Correction"},
        headers=admin_auth_headers,
    )
    assert too_much.status_code == 409
    assert too_much.json()["available"] == 550


async def test_admin_marks_redemption_failed(client, admin_auth_headers, auth_headers, make_balance, make_reward):
    make_balance(points=1000)
    reward_id = make_reward(points_cost=800, reward_type="premium_support", reward_value={"duration_days": 30}).id
    redeemed = await client.post("/api/v1/rewards/redeem", json={"reward_id": reward_id}, headers=auth_headers)
    redemption_id = redeemed.json()["redemption"]["id"]

    pending = (await client.get("/api/v1/admin/redemptions?status=pending", headers=admin_auth_headers)).json()
    assert [item["id"] for item in pending] == [redemption_id]

    failed = await client.post(
        f"/api/v1/admin/redemptions/{redemption_id}/failed",
        json={"reason": "Support plan discontinued"},
        headers=admin_auth_headers,
    )
    assert failed.json()["status"] == "failed"

    again = await client.post(f"/api/v1/admin/redemptions/{redemption_id}/applied", headers=admin_auth_headers)
    assert again.status_code == 409
    assert again.json()["error"] == "invalid_redemption_state"

    summary = (await client.get(f"/api/v1/admin/points/{ACCOUNT_ID}", headers=admin_auth_headers)).json()
    assert summary["total_points"] == 1000


async def test_admin_tasks_list(client, admin_auth_headers):
    response = await client.get("/api/v1/admin/tasks", headers=admin_auth_headers)
    assert [task["task_name"] for task in response.json()] == ["expire_points"]
