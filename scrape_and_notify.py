# scrape_and_notify.py
# One-shot run: scrape with credentials from the environment, print the report
# and send it to USER_WHATSAPP_TO when set.
import json
import logging
import os
import sys

from config import Settings, configure_logging
from message import format_message, opt_in_instruction
from models import ScrapeFailure
from playwright_attendance import ReportGenerator
from whatsapp import build_sender

logger = logging.getLogger("scrape_and_notify")


def main(environ=None, generator=None, sender=None):
    env = os.environ if environ is None else environ
    settings = Settings.from_env(env)
    configure_logging(settings.log_level)

    user = env.get("COLLEGE_USER")
    password = env.get("COLLEGE_PASS")
    to_number = env.get("USER_WHATSAPP_TO")

    missing = [k for k, v in (("COLLEGE_USER", user), ("COLLEGE_PASS", password)) if not v]
    if missing:
        print("ERROR: Missing required environment variables:", ", ".join(missing))
        print("Set them in your environment or local .env file.")
        return 2

    generator = generator or ReportGenerator(settings)
    outcome = generator.generate(user, password)
    if isinstance(outcome, ScrapeFailure):
        print("Scrape failed:", outcome.reason)
        return 4

    report = outcome.report
    print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))

    if not to_number:
        logger.info("USER_WHATSAPP_TO not set; not sending message.")
        return 0

    sender = sender or build_sender(settings)
    body = format_message(report) + opt_in_instruction(
        settings.twilio_join_code, settings.twilio_whatsapp_number
    )
    result = sender.send(to_number, body)
    if not result.success:
        print("Message not sent:", result.error)
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
