# config.py
# Environment-driven settings shared by the server and the command-line run.
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

DEFAULT_PORT = 10000
DEFAULT_LOGIN_URL = "https://login.vardhaman.org/"
PRODUCTION_CHROME_BINARY = Path("/usr/bin/google-chrome")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _optional(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_whatsapp_number: Optional[str] = None
    twilio_join_code: Optional[str] = None
    app_env: str = "development"
    port: int = DEFAULT_PORT
    portal_login_url: str = DEFAULT_LOGIN_URL
    chrome_binary_path: Optional[Path] = None
    static_dir: Path = BASE_DIR / "public"
    debug_artifacts_dir: Optional[Path] = None
    log_level: str = "INFO"
    debug: bool = False

    @property
    def is_local(self) -> bool:
        return self.app_env != "production"

    @property
    def messaging_configured(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ

        app_env = (env.get("APP_ENV") or "development").strip().lower()
        binary = _optional(env, "CHROME_BINARY_PATH")
        if binary:
            chrome_binary_path: Optional[Path] = Path(binary)
        elif app_env == "production":
            chrome_binary_path = PRODUCTION_CHROME_BINARY
        else:
            # bundled Chromium from `playwright install chromium`
            chrome_binary_path = None

        debug_dir = _optional(env, "DEBUG_ARTIFACTS_DIR")
        static_dir = _optional(env, "STATIC_DIR")

        return cls(
            twilio_account_sid=_optional(env, "TWILIO_ACCOUNT_SID"),
            twilio_auth_token=_optional(env, "TWILIO_AUTH_TOKEN"),
            twilio_whatsapp_number=_optional(env, "TWILIO_WHATSAPP_NUMBER"),
            twilio_join_code=_optional(env, "TWILIO_JOIN_CODE"),
            app_env=app_env,
            port=int(env.get("PORT") or DEFAULT_PORT),
            portal_login_url=_optional(env, "PORTAL_LOGIN_URL") or DEFAULT_LOGIN_URL,
            chrome_binary_path=chrome_binary_path,
            static_dir=Path(static_dir) if static_dir else BASE_DIR / "public",
            debug_artifacts_dir=Path(debug_dir) if debug_dir else None,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
            debug=(env.get("FLASK_DEBUG") or "").strip().lower() in ("1", "true", "yes"),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
