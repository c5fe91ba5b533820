from __future__ import annotations

from urllib.parse import urljoin

import requests
import structlog

from scanbridge.config import get_settings
from scanbridge.errors import TargetNotFoundError

logger = structlog.get_logger(__name__)


def is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


def _headers() -> dict[str, str]:
    return {"User-Agent": get_settings().user_agent}


def fetch_text(url: str, timeout_ms: int | None = None) -> str | None:
    """GET ``url`` and return its body, or ``None`` if it is missing or unreachable.

    Each attempt is bounded by ``timeout_ms``; a slow server counts as missing.
    """
    timeout = (timeout_ms or get_settings().web_timeout_ms) / 1000
    try:
        response = requests.get(url, headers=_headers(), timeout=timeout)
    except requests.RequestException as exc:
        logger.debug("web.fetch_failed", url=url, error=str(exc))
        return None
    if not response.ok:
        logger.debug("web.fetch_status", url=url, status=response.status_code)
        return None
    return response.text


def fetch_first(base: str, paths: list[str], timeout_ms: int | None = None) -> tuple[str | None, str]:
    """Try each site-root path of ``base``; return the first body found and where it came from."""
    source = base
    for path in paths:
        source = urljoin(base, "/" + path.lstrip("/"))
        content = fetch_text(source, timeout_ms)
        if content is not None:
            return content, source
    return None, source


def probe_url(url: str, timeout_ms: int | None = None) -> None:
    timeout = (timeout_ms or get_settings().web_timeout_ms) / 1000
    try:
        response = requests.get(url, headers=_headers(), timeout=timeout, stream=True)
        response.close()
    except requests.RequestException as exc:
        raise TargetNotFoundError(url, str(exc)) from exc
    if response.status_code >= 400:
        raise TargetNotFoundError(url, f"HTTP {response.status_code}")
