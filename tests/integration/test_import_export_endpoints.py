"""Integration tests for CSV import/export endpoints."""
import csv
import io
import pytest


def upload(text: str):
    return {"file": ("entries.csv", text.encode("utf-8"), "text/csv")}


@pytest.mark.asyncio
class TestExport:
    """Tests for GET /import-export/export.csv endpoint."""

    async def test_export(self, app_client, auth_headers):
        headers = await auth_headers()
        project_id = (await app_client.post("/projects", json={"name": "Client A"}, headers=headers)).json()["id"]
        await app_client.post(
            "/time-entries",
            json={
                "project_id": project_id,
                "description": "Design",
                "start_time": "2024-01-01T09:00:00Z",
                "end_time": "2024-01-01T10:00:00Z",
            },
            headers=headers,
        )

        response = await app_client.get("/import-export/export.csv", headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "work-timer-export-" in response.headers["content-disposition"]
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert len(rows) == 1
        assert rows[0]["project"] == "Client A"
        assert rows[0]["startTime"] == "2024-01-01T09:00:00.000Z"
        assert rows[0]["duration"] == "3600000"


@pytest.mark.asyncio
class TestImport:
    """Tests for POST /import-export/import endpoint."""

    async def test_import_creates_projects(self, app_client, auth_headers):
        headers = await auth_headers()
        text = (
            "description,startTime,endTime,project\n"
            "One,2024-01-01T09:00:00Z,2024-01-01T10:00:00Z,Client A\n"
            "Two,2024-01-02T09:00:00Z,2024-01-02T11:00:00Z,Client B\n"
        )

        response = await app_client.post("/import-export/import", files=upload(text), headers=headers)

        assert response.status_code == 201
        assert response.json() == {"imported": 2, "projects_created": 2}
        projects = (await app_client.get("/projects?order_by=name&order=asc", headers=headers)).json()
        assert [p["name"] for p in projects["projects"]] == ["Client A", "Client B"]

    async def test_missing_column_rejects_file(self, app_client, auth_headers):
        headers = await auth_headers()
        text = "description,startTime,endTime\nOne,2024-01-01T09:00:00Z,2024-01-01T10:00:00Z\n"

        response = await app_client.post("/import-export/import", files=upload(text), headers=headers)

        assert response.status_code == 400
        assert "project" in response.json()["detail"]
        entries = (await app_client.get("/time-entries", headers=headers)).json()
        assert entries["total"] == 0

    async def test_bad_row_writes_nothing(self, app_client, auth_headers):
        headers = await auth_headers()
        text = (
            "description,startTime,endTime,project\n"
            "Good,2024-01-01T09:00:00Z,2024-01-01T10:00:00Z,Client A\n"
            "Bad,not-a-date,2024-01-01T10:00:00Z,Client A\n"
        )

        response = await app_client.post("/import-export/import", files=upload(text), headers=headers)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Row 2:")
        projects = (await app_client.get("/projects", headers=headers)).json()
        assert projects["total"] == 0

    async def test_non_utf8_upload(self, app_client, auth_headers):
        headers = await auth_headers()

        response = await app_client.post(
            "/import-export/import",
            files={"file": ("entries.csv", b"\xff\xfe\x00bad", "text/csv")},
            headers=headers,
        )

        assert response.status_code == 400

    async def test_round_trip_preserves_entries(self, app_client, auth_headers):
        """Entries exported by one user import into another unchanged."""
        source = await auth_headers("source@example.com")
        target = await auth_headers("target@example.com")
        client_a = (await app_client.post("/projects", json={"name": "Client A"}, headers=source)).json()["id"]
        client_b = (await app_client.post("/projects", json={"name": "Client B"}, headers=source)).json()["id"]
        for project_id, description, start, end in [
            (client_a, 'Work, "part" 1', "2024-01-03T09:00:00.250Z", "2024-01-03T10:15:00.750Z"),
            (client_b, "Review", "2024-01-04T13:00:00Z", "2024-01-04T14:00:00Z"),
            (client_a, "Still going", "2024-01-05T08:00:00Z", None),
        ]:
            await app_client.post(
                "/time-entries",
                json={"project_id": project_id, "description": description, "start_time": start, "end_time": end},
                headers=source,
            )

        exported = await app_client.get("/import-export/export.csv", headers=source)
        imported = await app_client.post(
            "/import-export/import", files=upload(exported.text), headers=target
        )
        assert imported.json() == {"imported": 3, "projects_created": 2}

        def entry_tuples(text):
            return sorted(
                (row["description"], row["startTime"], row["endTime"], row["project"])
                for row in csv.DictReader(io.StringIO(text))
            )

        re_exported = await app_client.get("/import-export/export.csv", headers=target)
        assert entry_tuples(re_exported.text) == entry_tuples(exported.text) == [
            ("Review", "2024-01-04T13:00:00.000Z", "2024-01-04T14:00:00.000Z", "Client B"),
            ("Still going", "2024-01-05T08:00:00.000Z", "", "Client A"),
            ('Work, "part" 1', "2024-01-03T09:00:00.250Z", "2024-01-03T10:15:00.750Z", "Client A"),
        ]

        query = "/reports?dateFrom=2024-01-01&dateTo=2024-01-31"
        source_report = (await app_client.get(query, headers=source)).json()
        target_report = (await app_client.get(query, headers=target)).json()
        assert target_report["total_ms"] == source_report["total_ms"] == 8_100_500 + 3_600_000
