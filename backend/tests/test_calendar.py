"""Calendar endpoint tests."""

import pytest
from httpx import AsyncClient

CALENDAR = "/api/v1/calendar"


async def create_goal(client: AsyncClient, **fields) -> dict:
    payload = {"title": "Goal"}
    payload.update(fields)
    response = await client.post("/api/v1/goals/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def create_task(client: AsyncClient, **fields) -> dict:
    response = await client.post("/api/v1/tasks/", json=fields)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_tasks_in_range_ordered_by_date(client: AsyncClient):
    await create_task(client, title="Late", scheduled_date="2026-03-20")
    await create_task(client, title="Early", scheduled_date="2026-03-02")
    await create_task(client, title="Outside", scheduled_date="2026-04-01")
    await create_task(client, title="Unscheduled")

    response = await client.get(
        f"{CALENDAR}/tasks", params={"start_date": "2026-03-01", "end_date": "2026-03-31"}
    )
    assert response.status_code == 200
    body = response.json()
    assert [task["title"] for task in body["tasks"]] == ["Early", "Late"]
    assert body["unscheduled_tasks"] is None


@pytest.mark.asyncio
async def test_range_bounds_are_inclusive(client: AsyncClient):
    await create_task(client, title="First", scheduled_date="2026-03-01")
    await create_task(client, title="Last", scheduled_date="2026-03-31")

    body = (
        await client.get(
            f"{CALENDAR}/tasks", params={"start_date": "2026-03-01", "end_date": "2026-03-31"}
        )
    ).json()
    assert [task["title"] for task in body["tasks"]] == ["First", "Last"]


@pytest.mark.asyncio
async def test_tasks_with_unscheduled_and_goal_filter(client: AsyncClient):
    goal = await create_goal(client, title="Trip")
    await create_task(client, title="Book flights", scheduled_date="2026-03-10", goal_ids=[goal["id"]])
    await create_task(client, title="Pack", goal_ids=[goal["id"]])
    await create_task(client, title="Unrelated", scheduled_date="2026-03-10")
    await create_task(client, title="Unrelated someday")

    response = await client.get(
        f"{CALENDAR}/tasks",
        params={
            "start_date": "2026-03-01",
            "end_date": "2026-03-31",
            "include_unscheduled": "true",
            "parent_goal_id": goal["id"],
        },
    )
    body = response.json()
    assert [task["title"] for task in body["tasks"]] == ["Book flights"]
    assert [task["title"] for task in body["unscheduled_tasks"]] == ["Pack"]
    assert body["tasks"][0]["goal_tasks"][0]["goal"]["title"] == "Trip"


@pytest.mark.asyncio
async def test_tasks_require_range(client: AsyncClient):
    response = await client.get(f"{CALENDAR}/tasks", params={"start_date": "2026-03-01"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_goals_overlapping_range(client: AsyncClient):
    await create_goal(
        client, title="Starts inside", start_date="2026-03-05T00:00:00Z", end_date="2026-06-01T00:00:00Z"
    )
    await create_goal(
        client, title="Ends inside", start_date="2026-01-01T00:00:00Z", end_date="2026-03-20T00:00:00Z"
    )
    await create_goal(client, title="Open ended", start_date="2025-01-01T00:00:00Z")
    await create_goal(
        client, title="Spans", start_date="2026-02-01T00:00:00Z", end_date="2026-12-31T00:00:00Z"
    )
    await create_goal(
        client, title="Before", start_date="2025-01-01T00:00:00Z", end_date="2025-02-01T00:00:00Z"
    )
    await create_goal(client, title="After", start_date="2026-05-01T00:00:00Z")

    response = await client.get(
        f"{CALENDAR}/goals", params={"start_date": "2026-03-01", "end_date": "2026-03-31"}
    )
    assert response.status_code == 200
    titles = [goal["title"] for goal in response.json()["goals"]]
    assert titles == ["Open ended", "Ends inside", "Spans", "Starts inside"]


@pytest.mark.asyncio
async def test_goals_scope_filter(client: AsyncClient):
    await create_goal(client, title="March", scope="MONTHLY", start_date="2026-03-01T00:00:00Z")
    await create_goal(client, title="Year", scope="YEARLY", start_date="2026-01-01T00:00:00Z")

    response = await client.get(
        f"{CALENDAR}/goals",
        params={"start_date": "2026-03-01", "end_date": "2026-03-31", "scope": "MONTHLY"},
    )
    assert [goal["title"] for goal in response.json()["goals"]] == ["March"]
