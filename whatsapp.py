# whatsapp.py
# Outbound WhatsApp delivery through Twilio.
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from config import Settings

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Twilio not configured."


@dataclass(frozen=True)
class SendResult:
    success: bool
    error: Optional[str] = None


class WhatsAppSender(Protocol):
    def send(self, to_number: str, body: str) -> SendResult: ...


def whatsapp_address(number: str) -> str:
    number = number.strip()
    if number.startswith("whatsapp:"):
        return number
    return f"whatsapp:{number}"


class TwilioWhatsAppSender:
    def __init__(self, client: Client, from_number: Optional[str]) -> None:
        self._client = client
        self._from = whatsapp_address(from_number) if from_number else None

    def send(self, to_number: str, body: str) -> SendResult:
        """Send ``body`` to ``to_number``; provider errors are returned, never raised."""
        try:
            msg = self._client.messages.create(
                from_=self._from,
                to=whatsapp_address(to_number),
                body=body,
            )
        except TwilioRestException as exc:
            logger.warning("❌ WhatsApp failed: %s", exc.msg)
            return SendResult(success=False, error=exc.msg)
        except Exception as exc:
            logger.warning("❌ WhatsApp failed: %s", exc)
            return SendResult(success=False, error=str(exc))

        logger.info("✅ WhatsApp sent! SID: %s", msg.sid)
        return SendResult(success=True)


class UnconfiguredSender:
    def send(self, to_number: str, body: str) -> SendResult:
        logger.warning("Twilio credentials not set, skipping send.")
        return SendResult(success=False, error=NOT_CONFIGURED)


def build_sender(settings: Settings) -> WhatsAppSender:
    if not settings.messaging_configured:
        return UnconfiguredSender()
    client = Client(settings.twilio_account_sid, settings.twilio_auth_token)
    return TwilioWhatsAppSender(client, settings.twilio_whatsapp_number)
