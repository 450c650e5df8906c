"""
Auth/Manager.py — Optional form-fill login before exploration.

The login is described by a JSON auth-script::

    {
        "login_url": "https://app.example.com/login",
        "username_selector": "#email",
        "password_selector": "#password",
        "username": "qa@example.com",
        "password": "…",
        "submit_selector": "button[type=submit]",
        "success_indicator": "nav .avatar"
    }

The login runs once in the shared browser context, so the session cookies
it produces are reused by every page the spider opens afterwards.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import BrowserContext, Error as PlaywrightError, Page

logger = logging.getLogger(__name__)

_REQUIRED_KEYS: frozenset[str] = frozenset(
    {
        "login_url",
        "username_selector",
        "password_selector",
        "username",
        "password",
        "submit_selector",
    }
)


@dataclass
class AuthConfig:
    """Parsed representation of the auth-script JSON file."""

    login_url: str
    username_selector: str
    password_selector: str
    username: str
    password: str
    submit_selector: str
    success_indicator: Optional[str] = None


class AuthManager:
    """Performs form-fill login with supplied credentials.

    Usage::

        manager = AuthManager(auth_script="auth.json")
        if manager.has_auth():
            await manager.authenticate(context)
    """

    def __init__(self, auth_script: Optional[str] = None) -> None:
        self.auth_config: Optional[AuthConfig] = None
        if auth_script:
            self._load_auth_config(auth_script)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def has_auth(self) -> bool:
        """Return *True* if a usable login description was loaded."""
        return self.auth_config is not None

    async def authenticate(self, context: BrowserContext) -> bool:
        """Log in inside *context*; return *True* if the form was submitted."""
        if not self.auth_config:
            return False
        return await self._do_login(context)

    async def re_authenticate(self, context: BrowserContext) -> bool:
        """Re-run the login flow after session expiry detection."""
        logger.info("Session expired — re-authenticating…")
        return await self.authenticate(context)

    def is_login_page(self, url: str) -> bool:
        """Return *True* if *url* matches the configured login URL.

        Query strings and trailing slashes are ignored.
        """
        if not self.auth_config:
            return False
        login = self.auth_config.login_url.split("?")[0].rstrip("/")
        current = url.split("?")[0].rstrip("/")
        return current == login or current.startswith(login + "/")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load_auth_config(self, path: str) -> None:
        """Parse the auth-script at *path*; log and ignore it when invalid."""
        try:
            with open(path) as fh:
                data = json.load(fh)
        except FileNotFoundError:
            logger.error("Auth script not found: %s", path)
            return
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON in auth script %s: %s", path, exc)
            return

        if not isinstance(data, dict):
            logger.error("Auth script must contain a JSON object: %s", path)
            return

        missing = _REQUIRED_KEYS - data.keys()
        if missing:
            logger.error("Auth script missing required keys: %s", sorted(missing))
            return

        self.auth_config = AuthConfig(
            login_url=data["login_url"],
            username_selector=data["username_selector"],
            password_selector=data["password_selector"],
            username=data["username"],
            password=data["password"],
            submit_selector=data["submit_selector"],
            success_indicator=data.get("success_indicator"),
        )
        logger.debug("Auth config loaded from %s", path)

    async def _do_login(self, context: BrowserContext) -> bool:
        config = self.auth_config
        page: Optional[Page] = None

        try:
            page = await context.new_page()
            logger.info("Navigating to login page: %s", config.login_url)
            await page.goto(config.login_url, wait_until="networkidle", timeout=30_000)

            await page.fill(config.username_selector, config.username)
            await page.fill(config.password_selector, config.password)
            await page.click(config.submit_selector)
            await page.wait_for_load_state("networkidle", timeout=15_000)

            if config.success_indicator:
                try:
                    await page.wait_for_selector(config.success_indicator, timeout=7_000)
                    logger.info("Login successful (success indicator found)")
                except PlaywrightError:
                    logger.warning(
                        "Login success indicator '%s' not found — proceeding anyway",
                        config.success_indicator,
                    )
            else:
                logger.info("Login submitted (no success indicator configured)")
            return True

        except PlaywrightError as exc:
            logger.error("Login failed with Playwright error: %s", exc)
            return False
        finally:
            if page and not page.is_closed():
                await page.close()
