from __future__ import annotations

import json
import logging
import time
from typing import Any

import httpx

from code_router_updater.errors import AuthenticationError, FetchError

OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"
DEFAULT_TIMEOUT_SECONDS = 30.0

logger = logging.getLogger(__name__)


def build_request_headers(api_key: str | None) -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _timed_out(source_url: str, timeout_seconds: float) -> FetchError:
    return FetchError(
        f"Request to {source_url} timed out after {timeout_seconds:g} seconds."
    )


def fetch_openrouter_models(
    *,
    source_url: str = OPENROUTER_MODELS_URL,
    api_key: str | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.BaseTransport | None = None,
) -> list[dict[str, Any]]:
    """Fetch the raw ``data`` records from an OpenRouter-compatible models API.

    ``timeout_seconds`` bounds the whole request, body included.
    """
    logger.info(
        "models_fetch_started url=%s auth=%s timeout_seconds=%s",
        source_url,
        bool(api_key),
        timeout_seconds,
    )
    deadline = time.monotonic() + timeout_seconds
    try:
        with httpx.Client(transport=transport, timeout=timeout_seconds) as client:
            with client.stream(
                "GET",
                source_url,
                headers=build_request_headers(api_key),
            ) as response:
                if time.monotonic() > deadline:
                    raise _timed_out(source_url, timeout_seconds)
                if response.status_code in (401, 403):
                    raise AuthenticationError(
                        "OpenRouter models API requires an API key "
                        f"(HTTP {response.status_code}). Re-run with --api-key <token>.",
                        status_code=response.status_code,
                    )
                if response.status_code >= 400:
                    raise FetchError(
                        f"Failed to fetch OpenRouter models (HTTP {response.status_code}).",
                        status_code=response.status_code,
                    )

                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    if time.monotonic() > deadline:
                        raise _timed_out(source_url, timeout_seconds)
                    chunks.append(chunk)
    except httpx.TimeoutException as exc:
        raise _timed_out(source_url, timeout_seconds) from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"Request to {source_url} failed: {exc}") from exc

    try:
        body = json.loads(b"".join(chunks))
    except ValueError as exc:
        raise FetchError(
            "Invalid OpenRouter models response: body is not valid JSON."
        ) from exc

    if not isinstance(body, dict):
        raise FetchError(
            "Invalid OpenRouter models response: expected top-level object."
        )

    data = body.get("data")
    if not isinstance(data, list):
        raise FetchError("Invalid OpenRouter models response: missing 'data' list.")

    normalized: list[dict[str, Any]] = []
    for item in data:
        if isinstance(item, dict):
            normalized.append(item)

    skipped = len(data) - len(normalized)
    if skipped:
        logger.debug("models_fetch_skipped_non_objects count=%d", skipped)
    logger.info("models_fetched count=%d", len(normalized))
    return normalized
