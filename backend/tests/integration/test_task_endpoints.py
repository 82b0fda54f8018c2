"""
Integration tests for task endpoints at /api/v1/tasks including:
- Creating, reading and updating tasks
- Moving tasks within and across columns
- Assignment rules
- Labels and comments
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models.task import TaskStatus
from taskboard.models.user import UserRole
from taskboard.testing import (
    add_member,
    create_label,
    create_project,
    create_task,
    create_user,
    get_auth_headers,
    get_columns,
)


async def _board(session: AsyncSession, tasks_in_first_column: int = 0):
    owner = await create_user(session)
    project = await create_project(session, owner)
    columns = await get_columns(session, project)
    tasks = [await create_task(session, columns[0], owner) for _ in range(tasks_in_first_column)]
    return owner, project, columns, tasks


async def _column_order(client: AsyncClient, column_id: int, headers: dict) -> list[tuple[int, int]]:
    response = await client.get(f"/api/v1/columns/{column_id}/tasks?limit=50", headers=headers)
    assert response.status_code == 200
    return [(item["id"], item["position"]) for item in response.json()["items"]]


@pytest.mark.integration
async def test_create_task(client: AsyncClient, session: AsyncSession):
    owner, project, columns, _ = await _board(session)
    headers = get_auth_headers(owner)

    response = await client.post(
        "/api/v1/tasks/",
        json={"column_id": columns[0].id, "title": "Ship it", "description": "soon"},
        headers=headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Ship it"
    assert data["status"] == "todo"
    assert data["position"] == 1
    assert data["column"]["id"] == columns[0].id
    assert data["creator"]["id"] == owner.id
    assert data["assignee"] is None
    assert data["labels"] == []
    assert data["comment_count"] == 0


@pytest.mark.integration
async def test_create_task_non_member(client: AsyncClient, session: AsyncSession):
    _, _, columns, _ = await _board(session)
    outsider = await create_user(session)
    response = await client.post(
        "/api/v1/tasks/",
        json={"column_id": columns[0].id, "title": "Sneaky"},
        headers=get_auth_headers(outsider),
    )
    assert response.status_code == 403


@pytest.mark.integration
async def test_create_task_unknown_column(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    response = await client.post(
        "/api/v1/tasks/",
        json={"column_id": 987654, "title": "Lost"},
        headers=get_auth_headers(user),
    )
    assert response.status_code == 404


@pytest.mark.integration
async def test_update_task(client: AsyncClient, session: AsyncSession):
    owner, _, _, tasks = await _board(session, 1)
    headers = get_auth_headers(owner)
    task_id = tasks[0].id

    response = await client.patch(f"/api/v1/tasks/{task_id}", json={"status": "done"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "done"

    empty = await client.patch(f"/api/v1/tasks/{task_id}", json={}, headers=headers)
    assert empty.status_code == 400

    bad_status = await client.patch(f"/api/v1/tasks/{task_id}", json={"status": "blocked"}, headers=headers)
    assert bad_status.status_code == 400


@pytest.mark.integration
async def test_move_task_reorders_columns(client: AsyncClient, session: AsyncSession):
    owner, _, columns, tasks = await _board(session, 4)
    headers = get_auth_headers(owner)
    todo_id, doing_id = columns[0].id, columns[1].id
    a, b, c, d = [task.id for task in tasks]

    moved = await client.post(
        f"/api/v1/tasks/{a}/move",
        json={"to_column_id": todo_id, "to_position": 4},
        headers=headers,
    )
    assert moved.status_code == 200
    assert moved.json()["position"] == 4
    assert await _column_order(client, todo_id, headers) == [(b, 1), (c, 2), (d, 3), (a, 4)]

    across = await client.post(
        f"/api/v1/tasks/{c}/move",
        json={"to_column_id": doing_id, "to_position": 1},
        headers=headers,
    )
    assert across.status_code == 200
    assert across.json()["column_id"] == doing_id
    assert await _column_order(client, todo_id, headers) == [(b, 1), (d, 2), (a, 3)]
    assert await _column_order(client, doing_id, headers) == [(c, 1)]


@pytest.mark.integration
@pytest.mark.parametrize("position", [0, 3])
async def test_move_task_bad_position(client: AsyncClient, session: AsyncSession, position: int):
    owner, _, columns, tasks = await _board(session, 2)
    headers = get_auth_headers(owner)
    task_id, doing_id = tasks[0].id, columns[1].id
    todo_id = columns[0].id
    before = await _column_order(client, todo_id, headers)

    response = await client.post(
        f"/api/v1/tasks/{task_id}/move",
        json={"to_column_id": doing_id, "to_position": position},
        headers=headers,
    )
    # position 0 fails request validation; 3 exceeds the empty column's count + 1
    assert response.status_code == 400
    assert await _column_order(client, todo_id, headers) == before


@pytest.mark.integration
async def test_move_task_across_projects(client: AsyncClient, session: AsyncSession):
    owner, first, columns, tasks = await _board(session, 2)
    second = await create_project(session, owner)
    foreign_column_id = (await get_columns(session, second))[0].id
    headers = get_auth_headers(owner)
    todo_id = columns[0].id
    task_id = tasks[0].id
    before = await _column_order(client, todo_id, headers)

    response = await client.post(
        f"/api/v1/tasks/{task_id}/move",
        json={"to_column_id": foreign_column_id, "to_position": 1},
        headers=headers,
    )

    assert response.status_code == 403
    assert await _column_order(client, todo_id, headers) == before
    assert await _column_order(client, foreign_column_id, headers) == []


@pytest.mark.integration
async def test_assign_task(client: AsyncClient, session: AsyncSession):
    owner, project, _, tasks = await _board(session, 1)
    member = await create_user(session)
    outsider = await create_user(session)
    admin = await create_user(session, role=UserRole.admin)
    await add_member(session, project, member)
    member_headers = get_auth_headers(member)
    admin_headers = get_auth_headers(admin)
    task_id, member_id, outsider_id = tasks[0].id, member.id, outsider.id

    ok = await client.put(f"/api/v1/tasks/{task_id}/assignee", json={"assignee_id": member_id}, headers=member_headers)
    assert ok.status_code == 200
    assert ok.json()["assignee"]["id"] == member_id

    denied = await client.put(
        f"/api/v1/tasks/{task_id}/assignee", json={"assignee_id": outsider_id}, headers=member_headers
    )
    assert denied.status_code == 403

    by_admin = await client.put(
        f"/api/v1/tasks/{task_id}/assignee", json={"assignee_id": outsider_id}, headers=admin_headers
    )
    assert by_admin.status_code == 200
    assert by_admin.json()["assignee_id"] == outsider_id

    cleared = await client.put(f"/api/v1/tasks/{task_id}/assignee", json={"assignee_id": None}, headers=admin_headers)
    assert cleared.status_code == 200
    assert cleared.json()["assignee"] is None


@pytest.mark.integration
async def test_task_labels(client: AsyncClient, session: AsyncSession):
    owner, project, _, tasks = await _board(session, 1)
    label = await create_label(session, project, name="bug")
    headers = get_auth_headers(owner)
    task_id, label_id = tasks[0].id, label.id

    added = await client.put(f"/api/v1/tasks/{task_id}/labels/{label_id}", headers=headers)
    assert added.status_code == 200
    assert [item["name"] for item in added.json()["labels"]] == ["bug"]

    again = await client.put(f"/api/v1/tasks/{task_id}/labels/{label_id}", headers=headers)
    assert [item["id"] for item in again.json()["labels"]] == [label_id]

    removed = await client.delete(f"/api/v1/tasks/{task_id}/labels/{label_id}", headers=headers)
    assert removed.status_code == 200
    assert removed.json()["labels"] == []

    missing = await client.put(f"/api/v1/tasks/{task_id}/labels/99999", headers=headers)
    assert missing.status_code == 404


@pytest.mark.integration
async def test_comments(client: AsyncClient, session: AsyncSession):
    owner, _, _, tasks = await _board(session, 1)
    headers = get_auth_headers(owner)
    task_id = tasks[0].id

    created = await client.post(f"/api/v1/tasks/{task_id}/comments", json={"content": "First!"}, headers=headers)
    assert created.status_code == 201
    assert created.json()["author"]["id"] == owner.id

    await client.post(f"/api/v1/tasks/{task_id}/comments", json={"content": "Second"}, headers=headers)
    listing = await client.get(f"/api/v1/tasks/{task_id}/comments", headers=headers)
    assert listing.json()["total"] == 2

    task = await client.get(f"/api/v1/tasks/{task_id}", headers=headers)
    assert task.json()["comment_count"] == 2

    blank = await client.post(f"/api/v1/tasks/{task_id}/comments", json={"content": "  "}, headers=headers)
    assert blank.status_code == 400


@pytest.mark.integration
async def test_project_tasks_in_board_order(client: AsyncClient, session: AsyncSession):
    owner, project, columns, _ = await _board(session)
    done = await create_task(session, columns[2], owner)
    todo_first = await create_task(session, columns[0], owner)
    todo_second = await create_task(session, columns[0], owner, status=TaskStatus.in_progress)
    headers = get_auth_headers(owner)

    response = await client.get(f"/api/v1/projects/{project.id}/tasks", headers=headers)
    assert [item["id"] for item in response.json()["items"]] == [todo_first.id, todo_second.id, done.id]

    filtered = await client.get(f"/api/v1/projects/{project.id}/tasks?status=in_progress", headers=headers)
    assert [item["id"] for item in filtered.json()["items"]] == [todo_second.id]
