"""Goal endpoint tests."""

import uuid

import pytest
from httpx import AsyncClient

GOALS = "/api/v1/goals"


async def create_goal(client: AsyncClient, **fields) -> dict:
    payload = {"title": "Goal"}
    payload.update(fields)
    response = await client.post(f"{GOALS}/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def get_goal(client: AsyncClient, goal_id: str) -> dict:
    response = await client.get(f"{GOALS}/{goal_id}")
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_goal_defaults(client: AsyncClient):
    goal = await create_goal(client, title="Run a marathon")

    assert goal["title"] == "Run a marathon"
    assert goal["progress_mode"] == "TASK_BASED"
    assert goal["scope"] == "STANDALONE"
    assert goal["current_value"] == 0
    assert goal["is_marked_complete"] is False
    assert goal["parent_id"] is None


@pytest.mark.asyncio
async def test_create_goal_validation(client: AsyncClient):
    response = await client.post(f"{GOALS}/", json={"title": ""})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_task_based_child_bumps_parent_target(client: AsyncClient):
    parent = await create_goal(client, title="Year")
    await create_goal(client, title="January", parent_id=parent["id"])
    await create_goal(client, title="February", parent_id=parent["id"])
    await create_goal(
        client, title="Journal", parent_id=parent["id"], progress_mode="MANUAL_TOTAL"
    )

    assert (await get_goal(client, parent["id"]))["target_value"] == 2


@pytest.mark.asyncio
async def test_create_with_unknown_parent(client: AsyncClient):
    response = await client.post(
        f"{GOALS}/", json={"title": "Orphan", "parent_id": str(uuid.uuid4())}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_goal_detail_has_progress_summary(client: AsyncClient):
    goal = await create_goal(client, title="Books")
    response = await client.post(
        f"{GOALS}/{goal['id']}/bulk-tasks",
        json={"tasks": [{"title": "Dune", "size": 2}, {"title": "Emma", "size": 3}]},
    )
    assert response.status_code == 201
    dune = next(task for task in response.json() if task["title"] == "Dune")
    toggle = await client.post(f"/api/v1/tasks/{dune['id']}/complete")
    assert toggle.status_code == 200

    detail = await get_goal(client, goal["id"])

    summary = detail["progress_summary"]
    assert summary["mode"] == "TASK_BASED"
    assert summary["percent_complete"] == pytest.approx(40.0)
    assert summary["task_totals"] == {
        "total_count": 2,
        "completed_count": 1,
        "total_size": 5,
        "completed_size": 2,
    }
    assert detail["target_value"] == 2
    assert detail["current_value"] == 2
    assert {link["task"]["title"] for link in detail["goal_tasks"]} == {"Dune", "Emma"}


@pytest.mark.asyncio
async def test_manual_goal_percent_is_clamped(client: AsyncClient):
    goal = await create_goal(
        client, title="Savings", progress_mode="MANUAL_TOTAL", target_value=50
    )
    response = await client.post(f"{GOALS}/{goal['id']}/progress", json={"value": 75, "note": "bonus"})
    assert response.status_code == 201
    assert response.json()["value"] == 75

    detail = await get_goal(client, goal["id"])
    assert detail["current_value"] == 75
    assert detail["progress_summary"]["percent_complete"] == 100


@pytest.mark.asyncio
async def test_progress_never_goes_negative(client: AsyncClient):
    goal = await create_goal(client, progress_mode="MANUAL_TOTAL", target_value=10)
    await client.post(f"{GOALS}/{goal['id']}/progress", json={"value": 3})
    response = await client.post(f"{GOALS}/{goal['id']}/progress", json={"value": -8})
    assert response.status_code == 201

    assert (await get_goal(client, goal["id"]))["current_value"] == 0
    activities = await client.get(f"{GOALS}/{goal['id']}/activities")
    assert [entry["value"] for entry in activities.json()] == [-8, 3]


@pytest.mark.asyncio
async def test_list_goals_excludes_completed_by_default(client: AsyncClient):
    open_goal = await create_goal(client, title="Open")
    done = await create_goal(client, title="Done")
    await client.post(f"{GOALS}/{done['id']}/complete")

    titles = [goal["title"] for goal in (await client.get(f"{GOALS}/")).json()]
    assert titles == [open_goal["title"]]

    with_completed = (await client.get(f"{GOALS}/", params={"completed": "true"})).json()
    assert {goal["title"] for goal in with_completed} == {"Open", "Done"}


@pytest.mark.asyncio
async def test_list_goals_date_filter(client: AsyncClient):
    await create_goal(client, title="This year")

    response = await client.get(
        f"{GOALS}/", params={"start_date": "2001-01-01", "end_date": "2001-12-31"}
    )
    assert response.status_code == 200
    assert response.json() == []

    bad = await client.get(f"{GOALS}/", params={"start_date": "01/02/2001"})
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_list_goals_carries_parent_summary(client: AsyncClient):
    parent = await create_goal(client, title="Year")
    await create_goal(client, title="Month", parent_id=parent["id"])

    goals = {goal["title"]: goal for goal in (await client.get(f"{GOALS}/")).json()}
    assert goals["Month"]["parent"]["id"] == parent["id"]
    assert goals["Year"]["parent"] is None


@pytest.mark.asyncio
async def test_complete_and_uncomplete_routes(client: AsyncClient):
    parent = await create_goal(client, title="Year")
    child = await create_goal(client, title="Q1", parent_id=parent["id"])

    response = await client.post(f"{GOALS}/{child['id']}/complete")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Goal marked as completed"
    assert body["goal"]["is_marked_complete"] is True
    assert (await get_goal(client, parent["id"]))["current_value"] == 1

    again = await client.post(f"{GOALS}/{child['id']}/complete")
    assert again.json()["message"] == "Goal was already marked as completed (no-op)"
    assert (await get_goal(client, parent["id"]))["current_value"] == 1

    undo = await client.post(f"{GOALS}/{child['id']}/uncomplete")
    assert undo.json()["message"] == "Goal marked as incomplete"
    assert (await get_goal(client, parent["id"]))["current_value"] == 0


@pytest.mark.asyncio
async def test_complete_unknown_goal(client: AsyncClient):
    response = await client.post(f"{GOALS}/{uuid.uuid4()}/complete")
    assert response.status_code == 404
    assert response.json()["detail"] == "Goal not found"


@pytest.mark.asyncio
async def test_goals_are_owner_scoped(client: AsyncClient):
    goal = await create_goal(client, title="Private")

    response = await client.get(f"{GOALS}/{goal['id']}", headers={"X-Test-User": "mallory"})
    assert response.status_code == 404
    response = await client.post(
        f"{GOALS}/{goal['id']}/complete", headers={"X-Test-User": "mallory"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_goal(client: AsyncClient):
    goal = await create_goal(client, title="Draft")

    response = await client.put(
        f"{GOALS}/{goal['id']}", json={"title": "Final", "scope": "MONTHLY"}
    )
    assert response.status_code == 200
    assert response.json()["title"] == "Final"
    assert response.json()["scope"] == "MONTHLY"


@pytest.mark.asyncio
async def test_update_goal_rejects_self_parent(client: AsyncClient):
    goal = await create_goal(client)
    response = await client.put(f"{GOALS}/{goal['id']}", json={"parent_id": goal["id"]})
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delete_goal_keeps_tasks_and_adjusts_parent(client: AsyncClient):
    parent = await create_goal(client, title="Year")
    child = await create_goal(client, title="Month", parent_id=parent["id"])
    created = await client.post(
        f"{GOALS}/{child['id']}/bulk-tasks", json={"tasks": [{"title": "Plan"}]}
    )
    task_id = created.json()[0]["id"]
    await client.post(f"{GOALS}/{child['id']}/progress", json={"value": 1})

    response = await client.delete(f"{GOALS}/{child['id']}")
    assert response.status_code == 204

    assert (await client.get(f"{GOALS}/{child['id']}")).status_code == 404
    assert (await get_goal(client, parent["id"]))["target_value"] == 0
    task = await client.get(f"/api/v1/tasks/{task_id}")
    assert task.status_code == 200
    assert task.json()["goal_tasks"] == []


@pytest.mark.asyncio
async def test_goal_tree(client: AsyncClient):
    root = await create_goal(client, title="Root")
    level1 = await create_goal(client, title="L1", parent_id=root["id"])
    level2 = await create_goal(client, title="L2", parent_id=level1["id"])
    level3 = await create_goal(client, title="L3", parent_id=level2["id"])
    level4 = await create_goal(client, title="L4", parent_id=level3["id"])
    for value in range(7):
        await client.post(f"{GOALS}/{root['id']}/progress", json={"value": 1})
    await client.post(f"{GOALS}/{level2['id']}/progress", json={"value": 2, "note": "halfway"})

    created = await client.post(
        f"{GOALS}/{root['id']}/bulk-tasks",
        json={"tasks": [{"title": "Small", "size": 2}, {"title": "Big", "size": 3}]},
    )
    small = next(task for task in created.json() if task["title"] == "Small")
    await client.post(f"/api/v1/tasks/{small['id']}/complete")
    deep = await client.post(f"{GOALS}/{level4['id']}/bulk-tasks", json={"tasks": [{"title": "Deep"}]})
    await client.post(f"/api/v1/tasks/{deep.json()[0]['id']}/complete")

    response = await client.get(f"{GOALS}/tree")
    assert response.status_code == 200
    tree = response.json()

    assert [node["title"] for node in tree] == ["Root"]
    node = tree[0]
    detail = await get_goal(client, root["id"])
    assert node["progress_summary"] == detail["progress_summary"]
    assert node["progress_summary"]["percent_complete"] == pytest.approx(40.0)
    assert len(node["progress"]) == 5

    nodes = {}
    depth = 0
    while node["children"]:
        node = node["children"][0]
        nodes[node["title"]] = node
        depth += 1
    assert depth == 3
    assert node["title"] == "L3"

    assert [entry["note"] for entry in nodes["L2"]["progress"]] == ["halfway"]
    assert nodes["L1"]["progress"] == []
    leaf_summary = (await get_goal(client, level3["id"]))["progress_summary"]
    assert nodes["L3"]["progress_summary"] == leaf_summary
    assert leaf_summary["percent_complete"] == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_goals_by_scope(client: AsyncClient):
    await create_goal(client, title="Week 1", scope="WEEKLY")
    await create_goal(client, title="Someday")

    response = await client.get(f"{GOALS}/scope/WEEKLY")
    assert response.status_code == 200
    goals = response.json()
    assert [goal["title"] for goal in goals] == ["Week 1"]
    assert "progress_summary" in goals[0]

    assert (await client.get(f"{GOALS}/scope/DECADE")).status_code == 422


@pytest.mark.asyncio
async def test_goal_tasks_lists_tasks_and_children(client: AsyncClient):
    goal = await create_goal(client, title="Garden")
    await create_goal(client, title="Beds", parent_id=goal["id"])
    await client.post(f"{GOALS}/{goal['id']}/bulk-tasks", json={"tasks": [{"title": "Dig"}]})

    response = await client.get(f"{GOALS}/{goal['id']}/tasks")
    assert response.status_code == 200
    body = response.json()
    assert [task["title"] for task in body["tasks"]] == ["Dig"]
    assert [child["title"] for child in body["children"]] == ["Beds"]


@pytest.mark.asyncio
async def test_bulk_tasks_on_manual_goal_keeps_target(client: AsyncClient):
    goal = await create_goal(client, progress_mode="MANUAL_TOTAL", target_value=10)
    response = await client.post(
        f"{GOALS}/{goal['id']}/bulk-tasks",
        json={"tasks": [{"title": "A"}, {"title": "B", "scheduled_date": "2026-03-01"}]},
    )
    assert response.status_code == 201
    assert len(response.json()) == 2
    assert (await get_goal(client, goal["id"]))["target_value"] == 10


@pytest.mark.asyncio
async def test_bulk_tasks_rejects_empty_list(client: AsyncClient):
    goal = await create_goal(client)
    response = await client.post(f"{GOALS}/{goal['id']}/bulk-tasks", json={"tasks": []})
    assert response.status_code == 422
