"""
HTTP API tests using FastAPI's TestClient.
"""
import asyncio
import logging
import time
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from openpyxl import Workbook, load_workbook

from formfill.api.dependencies import get_profile_store
from formfill.api.main import app
from formfill.storage.profiles import ProfileStore
from formfill.targets.worksheet import SUCCESS_FILL

FIELDS = [
    {"selector": "#email", "type": "email", "name": "email", "label": "Email", "required": True},
    {"selector": "#name", "name": "fullname", "label": "Full Name"},
    {"selector": "#age", "type": "number", "name": "age", "label": "Age", "min": 0, "max": 120},
]


@pytest.fixture
def store(tmp_path):
    return ProfileStore(tmp_path / "profiles.json")


@pytest.fixture
def client(store):
    app.dependency_overrides[get_profile_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _xlsx_bytes(wb: Workbook) -> bytes:
    output = BytesIO()
    wb.save(output)
    return output.getvalue()


def _form_workbook() -> bytes:
    wb = Workbook()
    ws = wb.active
    ws["A1"] = "Full Name:"
    ws["A2"] = "Email:"
    return _xlsx_bytes(wb)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["main_endpoint"]["url"] == "/workbook/fill"


class TestMatch:

    def test_auto_map_with_sniffed_types(self, client):
        response = client.post("/match", json={
            "columns": ["Email", "Full Name", "Shoe Size"],
            "fields": FIELDS[:2],
            "rows": [{"Email": "ada@example.com", "Full Name": "Ada", "Shoe Size": "7"}],
        })

        assert response.status_code == 200
        body = response.json()
        assert body["mapping"]["Email"]["selector"] == "#email"
        assert body["mapping"]["Email"]["source"] == "auto"
        assert body["mapping"]["Full Name"]["selector"] == "#name"
        assert body["mapping"]["Full Name"]["field_label"] == "Full Name"
        assert body["unmapped"] == ["Shoe Size"]
        assert body["column_types"] == {"Email": "email", "Full Name": "text", "Shoe Size": "number"}

        breakdown = body["mapping"]["Email"]["breakdown"]
        assert set(breakdown) == {"name", "label", "attribute", "synonym", "type", "total"}
        assert breakdown["total"] == body["mapping"]["Email"]["confidence"]

    def test_manual_overrides(self, client):
        response = client.post("/match", json={
            "columns": ["Email", "Full Name"],
            "fields": FIELDS[:2],
            "column_types": {"Email": "email", "Full Name": "text"},
            "manual": {"Full Name": None, "Email": "#name"},
        })

        body = response.json()
        assert body["mapping"] == {
            "Email": {
                "selector": "#name",
                "confidence": 1.0,
                "level": "high",
                "source": "manual",
                "field_label": "Full Name",
                "breakdown": None,
            }
        }
        assert body["unmapped"] == ["Full Name"]

    def test_accepts_camel_case_attributes(self, client):
        response = client.post("/match", json={
            "columns": ["Email"],
            "fields": [{"selector": "#e", "ariaLabel": "Email", "dataAttrs": {"field": "email"}}],
            "column_types": {},
        })
        assert response.json()["mapping"]["Email"]["selector"] == "#e"

    def test_invalid_body(self, client):
        assert client.post("/match", json={"fields": []}).status_code == 422

    def test_bad_configuration_is_client_error(self, client, monkeypatch):
        from formfill.config import config
        monkeypatch.setenv("FORMFILL_TYPE_SAMPLE_SIZE", "0")
        config.reset()
        try:
            response = client.post("/match", json={"columns": ["Email"], "fields": FIELDS[:1], "rows": []})
        finally:
            monkeypatch.delenv("FORMFILL_TYPE_SAMPLE_SIZE")
            config.reset()

        assert response.status_code == 400
        assert "FORMFILL_TYPE_SAMPLE_SIZE" in response.json()["detail"]


class TestValidate:

    def test_serial_date(self, client):
        response = client.post("/validate", json={"value": "45678", "field": {"selector": "#d", "type": "date"}})
        assert response.json() == {"valid": True, "value": "2025-01-21", "error": None, "kind": None}

    def test_invalid_email(self, client):
        body = client.post("/validate", json={"value": "nope", "field": FIELDS[0]}).json()
        assert body["valid"] is False
        assert body["kind"] == "InvalidFormat"
        assert body["error"] == "Invalid email format"


def test_preview(client):
    response = client.post("/preview", json={
        "mapping": {"Email": "#email", "Age": "#age"},
        "fields": FIELDS,
        "row": {"Email": "bad", "Age": "200"},
    })

    body = response.json()
    assert response.status_code == 200
    assert [entry["valid"] for entry in body["entries"]] == [False, False]
    assert [w["error"] for w in body["warnings"]] == ["Invalid email format", "Above maximum (120)"]


class TestFill:

    def test_batch(self, client):
        response = client.post("/fill", json={
            "mapping": {"Email": "#email", "Name": "#name"},
            "fields": FIELDS,
            "rows": [
                {"Email": "ada@example.com", "Name": "Ada"},
                {"Email": "broken", "Name": "Bob"},
                {"Email": "cy@example.com", "Name": "Cy"},
            ],
            "options": {"stop_on_error": False},
        })

        body = response.json()
        assert body["status"] == "completed"
        assert body["aborted"] is False
        assert body["total_errors"] == 1
        assert body["total_filled"] == 5
        assert body["results"][1]["errors"][0]["kind"] == "InvalidFormat"
        assert body["values"]["#email"] == "cy@example.com"
        assert body["mapping"]["Email"]["selector"] == "#email"

    def test_stop_on_error_default(self, client):
        body = client.post("/fill", json={
            "mapping": {"Email": "#email"},
            "fields": FIELDS,
            "rows": [{"Email": "broken"}, {"Email": "ok@example.com"}],
        }).json()

        assert body["status"] == "stopped"
        assert len(body["results"]) == 1

    def test_delay_is_bounded(self, client):
        response = client.post("/fill", json={
            "mapping": {}, "fields": [], "rows": [], "options": {"delay_ms": 60_000},
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delay_does_not_block_other_requests(self):
        body = {
            "mapping": {"Email": "#email"},
            "fields": FIELDS,
            "rows": [{"Email": "a@example.com"}, {"Email": "b@example.com"}, {"Email": "c@example.com"}],
            "options": {"delay_ms": 1000},
        }
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            started = time.monotonic()
            fill = asyncio.create_task(client.post("/fill", json=body))
            await asyncio.sleep(0.05)
            info = await client.get("/")
            elapsed = time.monotonic() - started
            assert not fill.done()
            filled = await fill

        assert info.status_code == 200
        assert elapsed < 0.5
        assert filled.json()["status"] == "completed"


class TestProfiles:

    def test_save_list_apply_delete(self, client, store):
        saved = client.put("/profiles/example.com", json={
            "mapping": {"Email": {"selector": "#email", "confidence": 0.8}, "Fax": {"selector": "#fax"}},
        })
        assert saved.status_code == 200
        assert "example.com" in client.get("/profiles").json()

        applied = client.post("/profile/apply", json={
            "fields": FIELDS, "url": "https://www.example.com/signup",
        }).json()
        assert applied["domain"] == "example.com"
        assert applied["mapping"]["Email"]["confidence"] == 0.8
        assert applied["mapping"]["Email"]["source"] == "profile"
        assert "Fax" not in applied["mapping"]

        client.delete("/profiles/example.com")
        assert client.get("/profiles").json() == {}

    def test_apply_inline(self, client):
        body = client.post("/profile/apply", json={
            "fields": FIELDS, "saved": {"Name": "#name"},
        }).json()
        assert body["mapping"]["Name"]["confidence"] == 0.9

    def test_apply_tolerates_malformed_saved_entries(self, client):
        saved = client.put("/profiles/example.com", json={
            "mapping": {
                "Email": {"selector": "#email", "confidence": "high"},
                "Name": {"selector": ["#name"]},
            },
            "settings": {"skip_filled": True},
        })
        assert saved.status_code == 200

        response = client.post("/profile/apply", json={"fields": FIELDS, "url": "https://example.com/"})

        assert response.status_code == 200
        body = response.json()
        assert body["mapping"]["Email"]["confidence"] == 0.9
        assert "Name" not in body["mapping"]
        assert body["options"]["skip_filled"] is True

    def test_profile_settings_are_validated(self, client):
        response = client.put("/profiles/example.com", json={"mapping": {}, "settings": {"delay": -1}})
        assert response.status_code == 422

    def test_apply_needs_saved_or_url(self, client):
        assert client.post("/profile/apply", json={"fields": FIELDS}).status_code == 400

    def test_apply_unknown_site(self, client):
        response = client.post("/profile/apply", json={"fields": FIELDS, "url": "https://nowhere.org"})
        assert response.status_code == 404

    def test_corrupt_store(self, client, store):
        store.path.write_text("{oops", encoding="utf-8")
        assert client.get("/profiles").status_code == 400


class TestSettings:

    def test_save_and_reset(self, client):
        defaults = client.get("/settings").json()
        assert defaults["enable_logging"] is False

        saved = client.put("/settings", json={"delay": 0, "skip_filled": True}).json()
        assert saved["delay"] == 0
        assert saved["skip_filled"] is True
        assert saved["stop_on_error"] == defaults["stop_on_error"]
        assert client.get("/settings").json() == saved

        assert client.delete("/settings").json() == defaults

    def test_rejects_bad_values(self, client):
        assert client.put("/settings", json={"delay": 60_000}).status_code == 422
        assert client.put("/settings", json={"skip_filled": "sometimes"}).status_code == 422

    def test_enable_logging(self, client):
        project_logger = logging.getLogger("formfill")
        previous = project_logger.level
        try:
            client.put("/settings", json={"enable_logging": True})
            assert project_logger.level == logging.DEBUG
        finally:
            project_logger.setLevel(previous)


class TestWorkbookFill:

    def test_fills_detected_fields(self, client):
        response = client.post(
            "/workbook/fill",
            params={"row": 1},
            files={
                "data_file": ("people.csv", b"Full Name,Email\nAda,ada@example.com\nBob,bob@example.com\n", "text/csv"),
                "form_file": ("form.xlsx", _form_workbook(), "application/octet-stream"),
            },
        )

        assert response.status_code == 200
        assert response.headers["X-Fields-Detected"] == "2"
        assert response.headers["X-Fields-Filled"] == "2"
        assert response.headers["X-Fill-Errors"] == "0"
        assert "filled_form.xlsx" in response.headers["Content-Disposition"]

        ws = load_workbook(BytesIO(response.content)).active
        assert ws["B1"].value == "Bob"
        assert ws["B2"].value == "bob@example.com"

    def test_saved_highlight_setting_and_override(self, client, store):
        store.save_settings({"highlight_fields": True})
        files = {
            "data_file": ("people.csv", b"Full Name,Email\nAda,ada@example.com\n", "text/csv"),
            "form_file": ("form.xlsx", _form_workbook(), "application/octet-stream"),
        }

        highlighted = load_workbook(BytesIO(client.post("/workbook/fill", files=files).content)).active
        assert highlighted["B1"].fill.fgColor.rgb == SUCCESS_FILL.fgColor.rgb

        plain = client.post("/workbook/fill", params={"highlight": "false"}, files=files)
        assert load_workbook(BytesIO(plain.content)).active["B1"].fill.fill_type is None

    def test_row_out_of_range(self, client):
        response = client.post(
            "/workbook/fill",
            params={"row": 5},
            files={
                "data_file": ("people.csv", b"Full Name\nAda\n", "text/csv"),
                "form_file": ("form.xlsx", _form_workbook(), "application/octet-stream"),
            },
        )
        assert response.status_code == 400

    def test_rejects_wrong_file_type(self, client):
        response = client.post(
            "/workbook/fill",
            files={
                "data_file": ("people.json", b"{}", "application/json"),
                "form_file": ("form.xlsx", _form_workbook(), "application/octet-stream"),
            },
        )
        assert response.status_code == 400

    def test_form_without_labels(self, client):
        response = client.post(
            "/workbook/fill",
            files={
                "data_file": ("people.csv", b"Full Name\nAda\n", "text/csv"),
                "form_file": ("form.xlsx", _xlsx_bytes(Workbook()), "application/octet-stream"),
            },
        )
        assert response.status_code == 400
        assert "No form fields detected" in response.json()["detail"]

    def test_unreadable_form(self, client):
        response = client.post(
            "/workbook/fill",
            files={
                "data_file": ("people.csv", b"Full Name\nAda\n", "text/csv"),
                "form_file": ("form.xlsx", b"not a workbook", "application/octet-stream"),
            },
        )
        assert response.status_code == 400
