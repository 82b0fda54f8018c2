"""
Integration tests for invitations: owners invite by email, invitees accept.
"""

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.testing import add_member, create_project, create_user, get_auth_headers


@pytest.mark.integration
async def test_invite_and_accept(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    invitee = await create_user(session, email="friend@example.com")
    project = await create_project(session, owner)
    owner_headers = get_auth_headers(owner)
    invitee_headers = get_auth_headers(invitee)
    project_id, invitee_id = project.id, invitee.id

    invited = await client.post(
        f"/api/v1/projects/{project_id}/invitations",
        json={"email": "Friend@Example.com"},
        headers=owner_headers,
    )
    assert invited.status_code == 201
    invitation = invited.json()
    assert invitation["status"] == "pending"
    assert invitation["email"] == "friend@example.com"
    assert invitation["invited_by"]["id"] == owner.id

    accepted = await client.post(
        "/api/v1/invitations/accept",
        json={"token": invitation["token"]},
        headers=invitee_headers,
    )
    assert accepted.status_code == 200
    assert accepted.json()["role"] == "member"
    assert accepted.json()["user"]["id"] == invitee_id

    again = await client.post(
        "/api/v1/invitations/accept",
        json={"token": invitation["token"]},
        headers=invitee_headers,
    )
    assert again.status_code == 400

    members = await client.get(f"/api/v1/projects/{project_id}/members", headers=invitee_headers)
    assert [item["user"]["id"] for item in members.json()["items"]].count(invitee_id) == 1

    listing = await client.get(f"/api/v1/projects/{project_id}/invitations", headers=owner_headers)
    assert listing.json()["items"][0]["status"] == "accepted"

    actions = [
        item["action"]
        for item in (await client.get(f"/api/v1/projects/{project_id}/activity", headers=owner_headers)).json()["items"]
    ]
    assert actions.count("MEMBER_INVITED") == 1
    assert actions.count("INVITE_ACCEPTED") == 1


@pytest.mark.integration
async def test_accept_wrong_email(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    intruder = await create_user(session)
    project = await create_project(session, owner)
    owner_headers = get_auth_headers(owner)
    intruder_headers = get_auth_headers(intruder)
    project_id = project.id

    invited = await client.post(
        f"/api/v1/projects/{project_id}/invitations",
        json={"email": "someone-else@example.com"},
        headers=owner_headers,
    )
    token = invited.json()["token"]

    response = await client.post("/api/v1/invitations/accept", json={"token": token}, headers=intruder_headers)
    assert response.status_code == 403

    listing = await client.get(f"/api/v1/projects/{project_id}/invitations", headers=owner_headers)
    assert listing.json()["items"][0]["status"] == "pending"


@pytest.mark.integration
async def test_accept_unknown_token(client: AsyncClient, session: AsyncSession):
    user = await create_user(session)
    response = await client.post(
        "/api/v1/invitations/accept",
        json={"token": "does-not-exist"},
        headers=get_auth_headers(user),
    )
    assert response.status_code == 404


@pytest.mark.integration
async def test_accept_requires_auth(client: AsyncClient):
    response = await client.post("/api/v1/invitations/accept", json={"token": "whatever"})
    assert response.status_code == 401


@pytest.mark.integration
async def test_only_owner_invites(client: AsyncClient, session: AsyncSession):
    owner = await create_user(session)
    member = await create_user(session)
    project = await create_project(session, owner)
    await add_member(session, project, member)
    member_headers = get_auth_headers(member)
    project_id = project.id

    response = await client.post(
        f"/api/v1/projects/{project_id}/invitations",
        json={"email": "x@example.com"},
        headers=member_headers,
    )
    assert response.status_code == 403

    listing = await client.get(f"/api/v1/projects/{project_id}/invitations", headers=member_headers)
    assert listing.status_code == 403
