"""Integration tests for project endpoints."""
import pytest


@pytest.mark.asyncio
class TestProjectCreate:
    """Tests for POST /projects endpoint."""

    async def test_create_project(self, app_client, auth_headers):
        """Test creating a project."""
        headers = await auth_headers()

        response = await app_client.post(
            "/projects",
            json={"name": "Client A", "description": "Website", "color": "#336699"},
            headers=headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Client A"
        assert data["color"] == "#336699"
        assert "id" in data

    async def test_create_project_random_color(self, app_client, auth_headers):
        headers = await auth_headers()

        response = await app_client.post("/projects", json={"name": "Client B"}, headers=headers)

        assert response.status_code == 201
        assert response.json()["color"].startswith("#")

    async def test_create_project_bad_color(self, app_client, auth_headers):
        headers = await auth_headers()

        response = await app_client.post(
            "/projects", json={"name": "Client C", "color": "blue"}, headers=headers
        )

        assert response.status_code == 422

    async def test_duplicate_name_rejected(self, app_client, auth_headers):
        """Test that project names are unique per user."""
        headers = await auth_headers()
        await app_client.post("/projects", json={"name": "Client A"}, headers=headers)

        response = await app_client.post("/projects", json={"name": "Client A"}, headers=headers)

        assert response.status_code == 422
        assert response.headers["X-Error-Field"] == "name"

    async def test_same_name_for_different_users(self, app_client, auth_headers):
        first = await auth_headers("one@example.com")
        second = await auth_headers("two@example.com")

        a = await app_client.post("/projects", json={"name": "Shared"}, headers=first)
        b = await app_client.post("/projects", json={"name": "Shared"}, headers=second)

        assert a.status_code == 201
        assert b.status_code == 201

    async def test_create_requires_auth(self, app_client):
        response = await app_client.post("/projects", json={"name": "Client A"})

        assert response.status_code == 401


@pytest.mark.asyncio
class TestProjectList:
    """Tests for GET /projects endpoint."""

    async def test_list_projects_by_name(self, app_client, auth_headers):
        headers = await auth_headers()
        for name in ["Charlie", "Alpha", "Bravo"]:
            await app_client.post("/projects", json={"name": name}, headers=headers)

        response = await app_client.get("/projects?order_by=name&order=asc", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [p["name"] for p in data["projects"]] == ["Alpha", "Bravo", "Charlie"]

    async def test_list_projects_paginated(self, app_client, auth_headers):
        headers = await auth_headers()
        for name in ["A", "B", "C"]:
            await app_client.post("/projects", json={"name": name}, headers=headers)

        response = await app_client.get(
            "/projects?order_by=name&order=asc&page=2&size=2", headers=headers
        )

        data = response.json()
        assert data["total"] == 3
        assert [p["name"] for p in data["projects"]] == ["C"]

    async def test_list_only_own_projects(self, app_client, auth_headers):
        mine = await auth_headers("mine@example.com")
        theirs = await auth_headers("theirs@example.com")
        await app_client.post("/projects", json={"name": "Mine"}, headers=mine)
        await app_client.post("/projects", json={"name": "Theirs"}, headers=theirs)

        response = await app_client.get("/projects", headers=mine)

        assert [p["name"] for p in response.json()["projects"]] == ["Mine"]

    async def test_list_bad_order_field(self, app_client, auth_headers):
        headers = await auth_headers()

        response = await app_client.get("/projects?order_by=color", headers=headers)

        assert response.status_code == 422


@pytest.mark.asyncio
class TestProjectUpdateDelete:
    """Tests for GET/PATCH/DELETE /projects/{id} endpoints."""

    async def test_get_other_users_project(self, app_client, auth_headers):
        owner = await auth_headers("owner@example.com")
        other = await auth_headers("other@example.com")
        created = await app_client.post("/projects", json={"name": "Private"}, headers=owner)

        response = await app_client.get(f"/projects/{created.json()['id']}", headers=other)

        assert response.status_code == 404

    async def test_get_malformed_id(self, app_client, auth_headers):
        headers = await auth_headers()

        response = await app_client.get("/projects/not-an-id", headers=headers)

        assert response.status_code == 404

    async def test_rename(self, app_client, auth_headers):
        headers = await auth_headers()
        created = await app_client.post("/projects", json={"name": "Old"}, headers=headers)

        response = await app_client.patch(
            f"/projects/{created.json()['id']}", json={"name": "New"}, headers=headers
        )

        assert response.status_code == 200
        assert response.json()["name"] == "New"

    async def test_rename_to_taken_name(self, app_client, auth_headers):
        headers = await auth_headers()
        await app_client.post("/projects", json={"name": "Taken"}, headers=headers)
        created = await app_client.post("/projects", json={"name": "Other"}, headers=headers)

        response = await app_client.patch(
            f"/projects/{created.json()['id']}", json={"name": "Taken"}, headers=headers
        )

        assert response.status_code == 422

    async def test_delete_removes_entries(self, app_client, auth_headers):
        """Test deleting a project deletes its time entries."""
        headers = await auth_headers()
        project = (await app_client.post("/projects", json={"name": "Gone"}, headers=headers)).json()
        await app_client.post(
            "/time-entries",
            json={
                "project_id": project["id"],
                "description": "Work",
                "start_time": "2024-01-01T09:00:00Z",
                "end_time": "2024-01-01T10:00:00Z",
            },
            headers=headers,
        )

        response = await app_client.delete(f"/projects/{project['id']}", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"deleted_count": 1, "deleted_entries": 1}

        entries = await app_client.get("/time-entries", headers=headers)
        assert entries.json()["total"] == 0
