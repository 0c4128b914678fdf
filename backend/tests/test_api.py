"""HTTP tests for the operator and desktop client endpoints."""

import uuid
from datetime import datetime, timezone

import pytest

from affiliate_hub.api.v1 import scrape as scrape_api
from affiliate_hub.api.v1 import programs as programs_api
from affiliate_hub.models.program_template import ProgramTemplate
from affiliate_hub.models.scrape_job import ScrapeJob, JOB_ERROR, JOB_RUNNING
from affiliate_hub.models.scraped_program import ScrapedProgram
from affiliate_hub.models.user_program_selection import UserProgramSelection
from affiliate_hub.tasks import scrape_tasks


def add_program(db, name, slug, **fields) -> ScrapedProgram:
    now = datetime.now(timezone.utc)
    program = ScrapedProgram(
        id=uuid.uuid4(), slug=slug, name=name, scraped_at=now, last_checked_at=now, **fields
    )
    db.add(program)
    db.commit()
    return program


class FakeTask:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.queued = []

    def delay(self, *args):
        if self.error is not None:
            raise self.error
        self.queued.append(args)


class TestAuth:
    def test_admin_routes_require_credentials(self, client):
        assert client.post("/api/v1/admin/scrape", json={}).status_code == 401
        assert client.get("/api/v1/admin/programs").status_code == 401
        assert client.post("/api/v1/admin/export", json={}).status_code == 401

    def test_client_key_is_not_admin(self, client, make_user):
        user = make_user("client@example.com")
        response = client.get("/api/v1/admin/scrape", headers={"X-API-Key": user.api_key})
        assert response.status_code == 401

    def test_client_routes_require_api_key(self, client):
        response = client.get("/api/v1/client/programs/sync")
        assert response.status_code == 401
        assert response.json()["detail"] == "API key required"

    def test_unknown_api_key(self, client):
        response = client.get("/api/v1/client/templates", headers={"X-API-Key": "ah_live_" + "0" * 64})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid API key"

    def test_malformed_api_key(self, client, make_user):
        user = make_user("client@example.com")
        for key in (user.api_key[:-1], user.api_key.upper(), "sk_live_" + "0" * 64):
            response = client.get("/api/v1/client/templates", headers={"X-API-Key": key})
            assert response.status_code == 401
            assert response.json()["detail"] == "Invalid API key"

    def test_inactive_user_is_rejected(self, client, make_user):
        user = make_user("gone@example.com", is_active=False)
        response = client.get("/api/v1/client/templates", headers={"X-API-Key": user.api_key})
        assert response.status_code == 401

    def test_bearer_token_accepted(self, client, make_user):
        user = make_user("client@example.com")
        response = client.get(
            "/api/v1/client/programs/sync", headers={"Authorization": f"Bearer {user.api_key}"}
        )
        assert response.status_code == 200
        assert response.json() == {"programs": []}


class TestScrapeEndpoints:
    def test_small_scrape_runs_inline(self, client, db, admin_headers, listing_row, fake_scraper, monkeypatch):
        short_row = '<tr><td><a href="/affiliate-programs/short/">Short</a></td><td>x</td><td>y</td><td>z</td></tr>'
        scraper = fake_scraper([listing_row("Alpha", "alpha"), short_row, listing_row("Gamma", "gamma")])
        monkeypatch.setattr(scrape_tasks, "DirectoryScraper", lambda: scraper)

        response = client.post("/api/v1/admin/scrape", json={"limit": 10}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "success"
        assert data["programsFound"] == 2
        assert data["message"] == "Scraping completed"
        assert db.query(ScrapedProgram).count() == 2

    def test_inline_failure_is_reported_on_the_job(self, client, admin_headers, fake_scraper, monkeypatch):
        scraper = fake_scraper(error=RuntimeError("browser crashed"))
        monkeypatch.setattr(scrape_tasks, "DirectoryScraper", lambda: scraper)

        data = client.post("/api/v1/admin/scrape", json={"limit": 5}, headers=admin_headers).json()

        assert data["status"] == "error"
        log = client.get(f"/api/v1/admin/scrape?logId={data['logId']}", headers=admin_headers).json()["log"]
        assert log["error"].startswith("RuntimeError: browser crashed")
        assert log["completedAt"] is not None

    def test_large_scrape_is_queued(self, client, db, admin_headers, monkeypatch):
        task = FakeTask()
        monkeypatch.setattr(scrape_api, "scrape_directory", task)

        response = client.post(
            "/api/v1/admin/scrape", json={"software": "Cellxpert"}, headers=admin_headers
        )

        data = response.json()
        assert data["status"] == JOB_RUNNING
        assert data["message"] == "Scraping started in background"
        assert task.queued == [(data["logId"], "Cellxpert", None)]

        job = db.get(ScrapeJob, uuid.UUID(data["logId"]))
        assert job.status == JOB_RUNNING
        assert job.software == "Cellxpert"

    def test_queue_failure_closes_job(self, client, db, admin_headers, monkeypatch):
        monkeypatch.setattr(scrape_api, "scrape_directory", FakeTask(error=ConnectionError("broker down")))

        with pytest.raises(ConnectionError):
            client.post("/api/v1/admin/scrape", json={"limit": 500}, headers=admin_headers)

        job = db.query(ScrapeJob).one()
        assert job.status == JOB_ERROR
        assert "broker down" in job.error

    def test_limit_must_be_positive(self, client, admin_headers):
        response = client.post("/api/v1/admin/scrape", json={"limit": 0}, headers=admin_headers)
        assert response.status_code == 400

    def test_recent_jobs_and_unknown_job(self, client, db, admin_headers):
        for software in ("Affilka", "Scaleo"):
            db.add(ScrapeJob.start(software))
        db.commit()

        logs = client.get("/api/v1/admin/scrape", headers=admin_headers).json()["logs"]
        assert {log["software"] for log in logs} == {"Affilka", "Scaleo"}
        assert all(log["status"] == JOB_RUNNING for log in logs)

        response = client.get(f"/api/v1/admin/scrape?logId={uuid.uuid4()}", headers=admin_headers)
        assert response.status_code == 404


class TestProgramEndpoints:
    def test_list_and_stats(self, client, db, admin_headers):
        add_program(db, "Alpha", "alpha", software="Cellxpert", category="Casino", api_support=True)
        add_program(db, "Beta", "beta", software="Cellxpert", category="Sports", mapped_to_template=True)

        programs = client.get("/api/v1/admin/programs", headers=admin_headers).json()["programs"]
        assert [p["slug"] for p in programs] == ["alpha", "beta"]
        assert programs[0]["apiSupport"] is True

        stats = client.get("/api/v1/admin/programs/stats", headers=admin_headers).json()
        assert stats["stats"] == {
            "total": 2, "withAPI": 1, "availableInDirectory": 0, "mapped": 1, "unmapped": 1,
        }
        assert stats["bySoftware"] == [{"label": "Cellxpert", "count": 2}]
        assert len(stats["recentPrograms"]) == 2

    def test_patch_program(self, client, db, admin_headers):
        program = add_program(db, "Alpha", "alpha")

        response = client.patch(
            f"/api/v1/admin/programs/{program.id}", json={"status": "ignored"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["program"]["status"] == "ignored"

    def test_patch_requires_fields(self, client, db, admin_headers):
        program = add_program(db, "Alpha", "alpha")
        response = client.patch(f"/api/v1/admin/programs/{program.id}", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_resolve_redirect_stores_cleaned_url(self, client, db, admin_headers, monkeypatch):
        program = add_program(db, "Alpha", "alpha", join_url="https://x/a")
        monkeypatch.setattr(programs_api, "resolve_redirect", lambda url: "https://y/c?utm=1")

        response = client.post(
            "/api/v1/admin/programs/resolve-redirect", json={"programId": str(program.id)}, headers=admin_headers
        )

        data = response.json()
        assert data["originalUrl"] == "https://x/a"
        assert data["finalUrl"] == "https://y/c?utm=1"
        assert data["cleanedUrl"] == "https://y/c"
        db.expire_all()
        assert db.get(ScrapedProgram, program.id).final_join_url == "https://y/c"

    def test_resolve_redirect_errors(self, client, db, admin_headers):
        program = add_program(db, "Alpha", "alpha")

        missing = client.post(
            "/api/v1/admin/programs/resolve-redirect", json={"programId": str(uuid.uuid4())}, headers=admin_headers
        )
        no_join = client.post(
            "/api/v1/admin/programs/resolve-redirect", json={"programId": str(program.id)}, headers=admin_headers
        )

        assert missing.status_code == 404
        assert no_join.status_code == 400
        assert no_join.json()["detail"] == "Program has no join URL"


class TestExportEndpoint:
    def test_defaults_to_dry_run(self, client, db, admin_headers):
        add_program(db, "Alpha", "alpha", software="Cellxpert", api_support=True)

        data = client.post("/api/v1/admin/export", json={}, headers=admin_headers).json()

        assert data["dryRun"] is True
        assert data["results"]["created"] == 1
        assert db.query(ProgramTemplate).count() == 0

    def test_live_export(self, client, db, admin_headers):
        add_program(db, "Alpha", "alpha", software="Cellxpert", api_support=True)
        add_program(db, "Beta", "beta", software="Scaleo")

        data = client.post(
            "/api/v1/admin/export", json={"dryRun": False, "onlyWithAPI": True}, headers=admin_headers
        ).json()

        assert data["dryRun"] is False
        assert data["results"]["created"] == 1
        assert data["results"]["programs"][0]["status"] == "created"
        assert db.query(ProgramTemplate).count() == 1


class TestClientEndpoints:
    @pytest.fixture
    def headers(self, make_user):
        return {"X-API-Key": make_user("client@example.com").api_key}

    @pytest.fixture
    def template(self, db):
        template = ProgramTemplate(id=uuid.uuid4(), name="Alpha Affiliates", software_type="myaffiliates")
        db.add(template)
        db.commit()
        return template

    def test_sync_add_then_list(self, client, db, headers, template):
        response = client.post(
            "/api/v1/client/programs/sync",
            json={"programCode": "myaffiliates", "programName": "Alpha Affiliates", "action": "add"},
            headers=headers,
        )

        assert response.json() == {
            "success": True, "synced": True, "program": "Alpha Affiliates", "action": "selected",
        }
        assert db.query(UserProgramSelection).count() == 1

        programs = client.get("/api/v1/client/programs/sync", headers=headers).json()["programs"]
        assert [p["name"] for p in programs] == ["Alpha Affiliates"]
        assert programs[0]["programId"] == str(template.id)

    def test_sync_unknown_program(self, client, db, headers, template):
        response = client.post(
            "/api/v1/client/programs/sync",
            json={"programCode": "nope", "programName": "Nobody", "action": "add"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True, "synced": False, "message": "No matching web program template found",
        }
        assert db.query(UserProgramSelection).count() == 0

    def test_sync_requires_program_code(self, client, headers):
        response = client.post(
            "/api/v1/client/programs/sync", json={"programName": "Alpha", "action": "add"}, headers=headers
        )
        assert response.status_code == 400

    def test_templates(self, client, headers, template):
        data = client.get("/api/v1/client/templates?filter=all", headers=headers).json()

        assert data["meta"] == {"total": 1, "selectedCount": 0}
        assert data["filters"]["current"] == "all"
        assert data["templates"][0]["softwareType"] == "myaffiliates"
        assert data["templates"][0]["isSelected"] is False

    def test_templates_rejects_unknown_filter(self, client, headers):
        response = client.get("/api/v1/client/templates?filter=bogus", headers=headers)
        assert response.status_code == 400


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
