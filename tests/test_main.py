import pytest
from flask import Flask

import main
from main import MISSING_FIELDS, create_app
from models import AttendanceReport, ScrapeFailure, ScrapeSuccess, SubjectRecord
from whatsapp import SendResult

REPORT = AttendanceReport(
    total_percentage="82%",
    subjects=(SubjectRecord(subject="Math", time_slot="09:30 - 10:20", faculty="Dr. Rao", status="Present"),),
)
VALID_BODY = {"userId": "42", "username": "u", "password": "p", "whatsapp": "+15551234567"}


class SpyGenerator:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def generate(self, username, password):
        self.calls.append((username, password))
        return self.outcome


class SpySender:
    def __init__(self, result=SendResult(success=True)):
        self.result = result
        self.calls = []

    def send(self, to_number, body):
        self.calls.append((to_number, body))
        return self.result


def _client(settings, outcome=ScrapeSuccess(REPORT), result=SendResult(success=True)):
    generator = SpyGenerator(outcome)
    sender = SpySender(result)
    app = create_app(settings, generator=generator, sender=sender)
    app.config["TESTING"] = True
    return app.test_client(), generator, sender


def test_scrape_status(settings):
    client, _, _ = _client(settings)

    response = client.get("/api/scrape-status")

    assert response.status_code == 200
    assert response.get_json() == {"status": "Server running and healthy"}


def test_scrape_success_end_to_end(settings):
    client, generator, sender = _client(settings)

    response = client.post("/api/scrape", json=VALID_BODY)

    assert response.status_code == 200
    body = response.get_json()
    assert body["data"]["total_percentage"] == "82%"
    assert body["data"]["subjects"] == [
        {"subject": "Math", "time_slot": "09:30 - 10:20", "faculty": "Dr. Rao", "status": "Present"}
    ]
    assert body["whatsappSuccess"] is True
    assert body["message"] == "Report sent."
    assert body["optInInstruction"] == (
        '\n\n📢 Send the code "bright-river" to whatsapp:+14155238886 to opt-in.'
    )

    assert generator.calls == [("u", "p")]
    [(to_number, message)] = sender.calls
    assert to_number == "+15551234567"
    assert "- Math: ✅ Present" in message.splitlines()
    assert message.endswith(body["optInInstruction"])


@pytest.mark.parametrize("missing", ["username", "password", "whatsapp"])
def test_scrape_missing_field(settings, missing):
    client, generator, sender = _client(settings)
    payload = dict(VALID_BODY)
    del payload[missing]

    response = client.post("/api/scrape", json=payload)

    assert response.status_code == 400
    assert response.get_json() == {"error": MISSING_FIELDS}
    assert generator.calls == []
    assert sender.calls == []


@pytest.mark.parametrize("empty", ["username", "password", "whatsapp"])
def test_scrape_empty_field(settings, empty):
    client, generator, _ = _client(settings)

    response = client.post("/api/scrape", json={**VALID_BODY, empty: ""})

    assert response.status_code == 400
    assert generator.calls == []


def test_scrape_non_json_body(settings):
    client, generator, _ = _client(settings)

    response = client.post("/api/scrape", data="username=u", content_type="text/plain")

    assert response.status_code == 400
    assert generator.calls == []


def test_scrape_accepts_any_field_content(settings):
    client, generator, _ = _client(settings)

    response = client.post(
        "/api/scrape",
        json={"username": " ", "password": "p@ss word", "whatsapp": "not a number"},
    )

    assert response.status_code == 200
    assert generator.calls == [(" ", "p@ss word")]


def test_scrape_failure_skips_send(settings):
    client, _, sender = _client(settings, outcome=ScrapeFailure("Timed out after 60s waiting for username field"))

    response = client.post("/api/scrape", json=VALID_BODY)

    assert response.status_code == 500
    assert response.get_json() == {"error": "Timed out after 60s waiting for username field"}
    assert sender.calls == []


def test_scrape_send_failure_still_ok(settings):
    client, _, sender = _client(settings, result=SendResult(success=False, error="Twilio not configured."))

    response = client.post("/api/scrape", json=VALID_BODY)

    assert response.status_code == 200
    body = response.get_json()
    assert body["whatsappSuccess"] is False
    assert body["data"] == REPORT.to_dict()
    assert len(sender.calls) == 1


def test_static_file_served(settings):
    client, _, _ = _client(settings)

    response = client.get("/styles.css")

    assert response.status_code == 200
    assert response.data == b"body {}"


@pytest.mark.parametrize("path", ["/", "/dashboard", "/reports/today"])
def test_spa_fallback(settings, path):
    client, _, _ = _client(settings)

    response = client.get(path)

    assert response.status_code == 200
    assert b"attendance app" in response.data


def test_server_starts_without_debugger(monkeypatch):
    for key in ("APP_ENV", "FLASK_DEBUG", "PORT", "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN"):
        monkeypatch.delenv(key, raising=False)
    calls = []
    monkeypatch.setattr(Flask, "run", lambda self, **kwargs: calls.append(kwargs))

    main.main()

    assert calls == [{"host": "0.0.0.0", "port": 10000, "debug": False}]


def test_server_debug_opt_in(monkeypatch):
    monkeypatch.setenv("FLASK_DEBUG", "1")
    calls = []
    monkeypatch.setattr(Flask, "run", lambda self, **kwargs: calls.append(kwargs))

    main.main()

    assert calls[0]["debug"] is True


def test_failed_delivery_log_omits_username(settings, caplog):
    client, _, _ = _client(settings, result=SendResult(success=False, error="Twilio not configured."))

    client.post("/api/scrape", json={**VALID_BODY, "username": "21881A0501"})

    assert "Twilio not configured." in caplog.text
    assert "21881A0501" not in caplog.text
