# playwright_attendance.py
# Drives the student portal in a headless browser and builds an AttendanceReport.
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, ContextManager, Iterator, Optional

from playwright.sync_api import Error as PWError
from playwright.sync_api import Page, sync_playwright
from playwright.sync_api import TimeoutError as PWTimeout

from config import Settings
from models import UNAVAILABLE, AttendanceReport, ScrapeFailure, ScrapeOutcome, ScrapeSuccess
from scraper import parse_subject_rows

logger = logging.getLogger(__name__)

CHROME_ARGS = [
    "--disable-gpu",
    "--no-sandbox",
    "--window-size=1920,1080",
    "--disable-dev-shm-usage",
]
VIEWPORT = {"width": 1920, "height": 1080}

# portal selectors
USERNAME_INPUT = "input[name='txtuser']"
PASSWORD_INPUT = "input[name='txtpass']"
LOGIN_BUTTON = "[name='btnLogin']"
POPUP_CLOSE = "#ctl00_ContentPlaceHolder1_PopupCTRLMain_Image2"
ATTENDANCE_NAV = 'xpath=//*[@id="ctl00_ContentPlaceHolder1_divAttendance"]/div[3]/a/div[2]'
TOTAL_PERCENTAGE = ".attendance-count"

# timeouts in milliseconds
LOGIN_FORM_TIMEOUT = 60_000
LOGIN_SETTLE = 3_000
POPUP_TIMEOUT = 5_000
NAV_SETTLE = 2_000
ATTENDANCE_NAV_TIMEOUT = 10_000
ATTENDANCE_SETTLE = 3_000
TOTAL_TIMEOUT = 5_000

Launcher = Callable[[Settings], ContextManager[Page]]


class ElementTimeoutError(RuntimeError):
    """A required page element did not become visible within its budget."""


@contextmanager
def launch_browser(settings: Settings) -> Iterator[Page]:
    """Open an isolated headless Chromium session and always close it afterwards."""
    launch_kwargs = {"headless": True, "args": CHROME_ARGS}
    if settings.chrome_binary_path is not None:
        launch_kwargs["executable_path"] = str(settings.chrome_binary_path)

    with sync_playwright() as pw:
        browser = pw.chromium.launch(**launch_kwargs)
        try:
            context = browser.new_context(viewport=VIEWPORT)
            yield context.new_page()
        finally:
            browser.close()
            logger.debug("Browser session closed")


class ReportGenerator:
    def __init__(self, settings: Settings, launcher: Launcher = launch_browser) -> None:
        self._settings = settings
        self._launcher = launcher

    def generate(self, username: str, password: str) -> ScrapeOutcome:
        """Log in, open the attendance view and scrape it.

        Every failure is converted into a ``ScrapeFailure``; the browser
        session is released on all paths.
        """
        try:
            with self._launcher(self._settings) as page:
                try:
                    report = self._scrape(page, username, password)
                except Exception:
                    self._save_debug(page)
                    raise
        except Exception as exc:
            logger.exception("Scraping failed")
            return ScrapeFailure(reason=str(exc) or "Scraping failed.")

        logger.info("Scraped %d subject(s)", len(report.subjects))
        return ScrapeSuccess(report=report)

    def _scrape(self, page: Page, username: str, password: str) -> AttendanceReport:
        logger.info("Opening portal login page %s", self._settings.portal_login_url)
        page.goto(self._settings.portal_login_url)

        username_field = self._require(page, USERNAME_INPUT, LOGIN_FORM_TIMEOUT, "username field")
        password_field = self._require(page, PASSWORD_INPUT, LOGIN_FORM_TIMEOUT, "password field")
        login_button = self._require(page, LOGIN_BUTTON, LOGIN_FORM_TIMEOUT, "login button")

        logger.debug("Logging in as %s", username)
        logger.info("Submitting login form")
        username_field.fill(username)
        password_field.fill(password)
        login_button.click()
        self._settle(page, LOGIN_SETTLE)

        if self._dismiss_popup(page):
            logger.info("Dismissed post-login popup")
        self._settle(page, NAV_SETTLE)

        logger.info("Opening attendance view")
        attendance_nav = self._require(page, ATTENDANCE_NAV, ATTENDANCE_NAV_TIMEOUT, "attendance link")
        attendance_nav.click()
        self._settle(page, ATTENDANCE_SETTLE)

        total = self._read_total_percentage(page)
        if total is None:
            logger.info("Total attendance percentage not found, using '%s'", UNAVAILABLE)

        subjects = parse_subject_rows(page.content())
        return AttendanceReport(
            total_percentage=total if total is not None else UNAVAILABLE,
            subjects=tuple(subjects),
        )

    @staticmethod
    def _require(page: Page, selector: str, timeout: int, label: str):
        locator = page.locator(selector).first
        try:
            locator.wait_for(state="visible", timeout=timeout)
        except PWTimeout as exc:
            raise ElementTimeoutError(
                f"Timed out after {timeout // 1000}s waiting for {label} ({selector})"
            ) from exc
        return locator

    @staticmethod
    def _settle(page: Page, timeout: int) -> None:
        # upper bound only; a page that never goes idle is not a failure.
        # Right after a click the old page may still report idle, so this can
        # return at once; the bounded element waits that follow do the real polling.
        try:
            page.wait_for_load_state("networkidle", timeout=timeout)
        except PWTimeout:
            logger.debug("Page still busy after %dms, continuing", timeout)

    @staticmethod
    def _dismiss_popup(page: Page) -> bool:
        locator = page.locator(POPUP_CLOSE).first
        try:
            locator.wait_for(state="visible", timeout=POPUP_TIMEOUT)
            locator.click(timeout=POPUP_TIMEOUT)
        except PWError:
            return False
        return True

    @staticmethod
    def _read_total_percentage(page: Page) -> Optional[str]:
        locator = page.locator(TOTAL_PERCENTAGE).first
        try:
            locator.wait_for(state="visible", timeout=TOTAL_TIMEOUT)
            text = locator.inner_text(timeout=TOTAL_TIMEOUT).strip()
        except PWError:
            return None
        return text or None

    def _save_debug(self, page: Page) -> None:
        target = self._settings.debug_artifacts_dir
        if target is None:
            return
        prefix = f"failure_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
        try:
            target.mkdir(parents=True, exist_ok=True)
            screenshot = target / f"{prefix}_screenshot.png"
            html = target / f"{prefix}_page.html"
            page.screenshot(path=str(screenshot), full_page=True)
            html.write_text(page.content(), encoding="utf-8")
            logger.info("Saved debug files: %s, %s", screenshot, html)
        except Exception as exc:
            logger.warning("Failed to save debug files: %s", exc)

