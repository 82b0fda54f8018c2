"""
Integration tests for project endpoints at /api/v1/projects including:
- Creating and listing projects
- Columns, members and labels
- Activity log
- Pagination bounds
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models.user import UserRole
from taskboard.testing import add_member, create_label, create_project, create_user, get_auth_headers


@pytest.mark.integration
async def test_create_project(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    headers = get_auth_headers(user)

    response = await client.post("/api/v1/projects/", json={"name": "Roadmap"}, headers=headers)

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Roadmap"
    assert data["owner"]["id"] == user.id
    assert [(c["title"], c["position"]) for c in data["columns"]] == [
        ("To Do", 1),
        ("In Progress", 2),
        ("Done", 3),
    ]

    activity = await client.get(f"/api/v1/projects/{data['id']}/activity", headers=headers)
    assert activity.status_code == 200
    body = activity.json()
    assert body["total"] == 1
    assert body["items"][0]["action"] == "PROJECT_CREATED"
    assert body["items"][0]["actor"]["id"] == user.id


@pytest.mark.integration
async def test_create_project_requires_auth(client: AsyncClient):
    response = await client.post("/api/v1/projects/", json={"name": "Anon"})
    assert response.status_code == 401


@pytest.mark.integration
async def test_create_project_blank_name(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    response = await client.post("/api/v1/projects/", json={"name": "   "}, headers=get_auth_headers(user))
    assert response.status_code == 400
    assert response.json()["code"] == "BAD_INPUT"


@pytest.mark.integration
async def test_list_projects_pagination(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    headers = get_auth_headers(user)
    for index in range(3):
        await create_project(session, user, name=f"Board {index}")

    response = await client.get("/api/v1/projects/?offset=0&limit=2", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert len(data["items"]) == 2
    assert data["has_next"] is True

    search = await client.get("/api/v1/projects/?search=board 1", headers=headers)
    assert [item["name"] for item in search.json()["items"]] == ["Board 1"]


@pytest.mark.integration
@pytest.mark.parametrize("query", ["limit=0", "limit=51", "offset=-1", "search=%20%20"])
async def test_list_projects_bad_pagination(client: AsyncClient, session: AsyncSession, query: str):
    user = await create_user(session)
    response = await client.get(f"/api/v1/projects/?{query}", headers=get_auth_headers(user))
    assert response.status_code == 400
    assert response.json()["code"] == "BAD_INPUT"


@pytest.mark.integration
async def test_read_project_access(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    outsider = await create_user(session)
    admin = await create_user(session, role=UserRole.admin)
    project = await create_project(session, owner)

    assert (await client.get(f"/api/v1/projects/{project.id}", headers=get_auth_headers(owner))).status_code == 200
    forbidden = await client.get(f"/api/v1/projects/{project.id}", headers=get_auth_headers(outsider))
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "FORBIDDEN"
    assert (await client.get(f"/api/v1/projects/{project.id}", headers=get_auth_headers(admin))).status_code == 200

    missing = await client.get("/api/v1/projects/999999", headers=get_auth_headers(outsider))
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"


@pytest.mark.integration
async def test_create_column_inserts_and_shifts(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    member = await create_user(session)
    project = await create_project(session, owner)
    await add_member(session, project, member)
    owner_headers = get_auth_headers(owner)
    member_headers = get_auth_headers(member)
    project_id = project.id

    denied = await client.post(
        f"/api/v1/projects/{project_id}/columns",
        json={"title": "Review", "position": 2},
        headers=member_headers,
    )
    assert denied.status_code == 403

    created = await client.post(
        f"/api/v1/projects/{project_id}/columns",
        json={"title": "Review", "position": 2},
        headers=owner_headers,
    )
    assert created.status_code == 201
    assert created.json()["position"] == 2

    board = (await client.get(f"/api/v1/projects/{project_id}", headers=owner_headers)).json()
    assert [(c["title"], c["position"]) for c in board["columns"]] == [
        ("To Do", 1),
        ("Review", 2),
        ("In Progress", 3),
        ("Done", 4),
    ]

    too_far = await client.post(
        f"/api/v1/projects/{project_id}/columns",
        json={"title": "Nowhere", "position": 9},
        headers=owner_headers,
    )
    assert too_far.status_code == 400


@pytest.mark.integration
async def test_members_listing(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    member = await create_user(session)
    project = await create_project(session, owner)
    await add_member(session, project, member)

    response = await client.get(f"/api/v1/projects/{project.id}/members", headers=get_auth_headers(member))
    assert response.status_code == 200
    roles = {item["user"]["id"]: item["role"] for item in response.json()["items"]}
    assert roles == {owner.id: "owner", member.id: "member"}


@pytest.mark.integration
async def test_labels_create_and_list(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    member = await create_user(session)
    project = await create_project(session, owner)
    await add_member(session, project, member)
    await create_label(session, project, name="backend")
    owner_headers = get_auth_headers(owner)
    member_headers = get_auth_headers(member)
    project_id = project.id

    created = await client.post(
        f"/api/v1/projects/{project_id}/labels",
        json={"name": "urgent", "color": "#FF0000"},
        headers=owner_headers,
    )
    assert created.status_code == 201
    assert created.json()["color"] == "#FF0000"

    duplicate = await client.post(
        f"/api/v1/projects/{project_id}/labels",
        json={"name": "urgent"},
        headers=owner_headers,
    )
    assert duplicate.status_code == 400

    bad_color = await client.post(
        f"/api/v1/projects/{project_id}/labels",
        json={"name": "ui", "color": "blue"},
        headers=owner_headers,
    )
    assert bad_color.status_code == 400

    by_member = await client.post(
        f"/api/v1/projects/{project_id}/labels",
        json={"name": "docs"},
        headers=member_headers,
    )
    assert by_member.status_code == 403

    listing = await client.get(f"/api/v1/projects/{project_id}/labels", headers=member_headers)
    assert [item["name"] for item in listing.json()["items"]] == ["backend", "urgent"]
