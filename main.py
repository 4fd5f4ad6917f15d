# main.py
# HTTP entry point: scrape attendance on request and deliver it over WhatsApp.
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from flask import Flask, jsonify, request, send_from_directory

from config import Settings, configure_logging
from message import format_message, opt_in_instruction
from models import ScrapeFailure, ScrapeOutcome
from playwright_attendance import ReportGenerator
from whatsapp import WhatsAppSender, build_sender

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("username", "password", "whatsapp")
MISSING_FIELDS = "Please fill all fields."


class Generator(Protocol):
    def generate(self, username: str, password: str) -> ScrapeOutcome: ...


class ValidationError(ValueError):
    pass


def parse_scrape_request(payload: Optional[Dict[str, Any]]) -> Dict[str, str]:
    payload = payload if isinstance(payload, dict) else {}
    if any(not payload.get(name) for name in REQUIRED_FIELDS):
        raise ValidationError(MISSING_FIELDS)
    return {name: str(payload[name]) for name in REQUIRED_FIELDS}


def create_app(
    settings: Settings,
    generator: Optional[Generator] = None,
    sender: Optional[WhatsAppSender] = None,
) -> Flask:
    generator = generator or ReportGenerator(settings)
    sender = sender or build_sender(settings)
    static_dir = settings.static_dir

    app = Flask(__name__, static_folder=None)

    @app.get("/api/scrape-status")
    def scrape_status():
        return jsonify({"status": "Server running and healthy"}), 200

    @app.post("/api/scrape")
    def scrape():
        try:
            fields = parse_scrape_request(request.get_json(silent=True))
        except ValidationError as exc:
            return jsonify({"error": str(exc)}), 400

        outcome = generator.generate(fields["username"], fields["password"])
        if isinstance(outcome, ScrapeFailure):
            return jsonify({"error": outcome.reason}), 500

        report = outcome.report
        opt_in = opt_in_instruction(settings.twilio_join_code, settings.twilio_whatsapp_number)
        result = sender.send(fields["whatsapp"], format_message(report) + opt_in)
        if not result.success:
            logger.warning("Report not delivered: %s", result.error)

        return jsonify({
            "message": "Report sent.",
            "data": report.to_dict(),
            "whatsappSuccess": result.success,
            "optInInstruction": opt_in,
        }), 200

    @app.get("/", defaults={"path": ""})
    @app.get("/<path:path>")
    def frontend(path):
        # static files first, everything else falls back to the SPA entry
        if path and (static_dir / path).is_file():
            return send_from_directory(static_dir, path)
        return send_from_directory(static_dir, "index.html")

    return app


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if not settings.messaging_configured:
        logger.warning("Twilio credentials missing; WhatsApp delivery disabled")

    app = create_app(settings)
    logger.info("Server running on port %s", settings.port)
    app.run(host="0.0.0.0", port=settings.port, debug=settings.debug)


if __name__ == "__main__":
    main()
