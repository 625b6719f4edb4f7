"""HTTP client for the ColorKit API.

Rendering contexts outside the API process fetch snapshots through here and
resolve colors locally. When the API cannot be reached the last snapshot
fetched for the user keeps being served, or the defaults if there never was
one.
"""
from __future__ import annotations

import copy
import logging
import os
from typing import Any, Callable, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from colorkit.constants import DEFAULT_SETTINGS
from colorkit.engine.colors import EffectiveColor
from colorkit.engine.context import ResolutionContext
from colorkit.engine.days import DayAppearance

logger = logging.getLogger(__name__)

_USER_GETTER: Optional[Callable[[], Optional[str]]] = None
_BASE_URL: Optional[str] = None
_TOKEN: Optional[str] = None
_LAST_SNAPSHOT: dict[str, dict] = {}


class ApiError(RuntimeError):
    def __init__(self, status_code: int, reason: str, detail: Any):
        super().__init__(f"API error {status_code} {reason}: {detail}")
        self.status_code = status_code
        self.detail = detail


def _build_session():
    session = requests.Session()
    retry = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(502, 503, 504),
        allowed_methods=("GET", "POST", "PUT", "DELETE"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=4, pool_maxsize=4)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


def configure(user_getter, base_url: str | None = None, token: str | None = None):
    global _USER_GETTER, _BASE_URL, _TOKEN
    _USER_GETTER = user_getter
    _BASE_URL = base_url
    _TOKEN = token


def api_base_url() -> str:
    return _BASE_URL or os.getenv("API_BASE_URL") or ""


def backend_token() -> str:
    return _TOKEN or os.getenv("BACKEND_SESSION_SECRET") or ""


def current_user() -> Optional[str]:
    return _USER_GETTER() if _USER_GETTER else None


def _auth_headers() -> dict:
    token = backend_token()
    if not token:
        raise RuntimeError("BACKEND_SESSION_SECRET not configured")
    user_email = current_user()
    if not user_email:
        raise RuntimeError("Missing user email for API request")
    return {"X-User-Email": user_email, "X-Backend-Token": token}


def _error_from(response) -> ApiError:
    try:
        detail = response.json()
    except ValueError:
        detail = response.text
    if isinstance(detail, dict) and "detail" in detail:
        detail = detail["detail"]
    return ApiError(response.status_code, response.reason, detail)


def request(method: str, path: str, params: dict | None = None, json: dict | None = None, timeout: int = 10) -> Any:
    """Call the API as the configured user. Non-2xx answers raise ``ApiError``."""
    base = api_base_url().rstrip("/")
    if not base:
        raise RuntimeError("API_BASE_URL not configured")
    headers = _auth_headers()
    response = _SESSION.request(method, base + path, params=params, json=json, headers=headers, timeout=timeout)
    if not response.ok:
        raise _error_from(response)
    return None if response.status_code == 204 else response.json()


def _fallback(user_email: Optional[str]) -> dict:
    cached = _LAST_SNAPSHOT.get(user_email or "")
    return copy.deepcopy(cached) if cached is not None else copy.deepcopy(DEFAULT_SETTINGS)


def get_settings() -> dict:
    """Current snapshot for the configured user, or the last one that was fetched.

    Client errors (4xx) and a missing configuration still raise.
    """
    user_email = current_user()
    try:
        snapshot = request("GET", "/v1/settings")
    except requests.RequestException as exc:
        logger.warning("Settings fetch failed, serving last known snapshot: %s", exc)
        return _fallback(user_email)
    except ApiError as exc:
        if exc.status_code < 500:
            raise
        logger.warning("Settings fetch failed, serving last known snapshot: %s", exc)
        return _fallback(user_email)
    _LAST_SNAPSHOT[user_email or ""] = copy.deepcopy(snapshot)
    return snapshot


def settings_or_fallback() -> dict:
    """Like ``get_settings`` but never raises. Used by the resolvers and overlays."""
    try:
        return get_settings()
    except RuntimeError as exc:
        logger.warning("Settings unavailable, serving last known snapshot: %s", exc)
        return _fallback(current_user())


def clear_cache() -> None:
    _LAST_SNAPSHOT.clear()


def _context(snapshot: dict | None) -> ResolutionContext:
    return ResolutionContext(snapshot if snapshot is not None else settings_or_fallback())


def resolve_event_color(event_id: str, calendar_id: str | None = None, snapshot: dict | None = None) -> Optional[EffectiveColor]:
    return _context(snapshot).resolve_event_color(event_id, calendar_id)


def resolve_day_appearance(day, snapshot: dict | None = None) -> DayAppearance:
    return _context(snapshot).resolve_day_appearance(day)


def resolve_time_blocks(day, snapshot: dict | None = None) -> list[dict]:
    return _context(snapshot).resolve_time_blocks(day)


def save_event_color(event_id: str, colors: dict, apply_to_all: bool = False) -> dict:
    return request("PUT", "/v1/event-colors/events", json={"event_id": event_id, **colors, "applyToAll": apply_to_all})


def remove_event_color(event_id: str, apply_to_all: bool = False) -> dict:
    return request("DELETE", "/v1/event-colors/events", json={"event_id": event_id, "applyToAll": apply_to_all})


def set_date_color(date_key: str, color: str | None, opacity: int | None = None, label: str | None = None) -> dict:
    payload: dict[str, Any] = {"color": color}
    if opacity is not None:
        payload["opacity"] = opacity
    if label is not None:
        payload["label"] = label
    return request("PUT", f"/v1/settings/dates/{date_key}", json=payload)


def add_time_block(day_key: str, block: dict) -> dict:
    return request("POST", f"/v1/time-blocking/weekly/{day_key}", json=block)


def add_date_specific_time_block(date_key: str, block: dict) -> dict:
    return request("POST", f"/v1/time-blocking/dates/{date_key}", json=block)
