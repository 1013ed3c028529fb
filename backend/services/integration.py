from __future__ import annotations

import httpx


class IntegrationNotConfigured(RuntimeError):
    """Raised when a third-party integration has no credentials configured."""


def api_error_message(response: httpx.Response) -> str:
    message = response.text
    try:
        payload = response.json()
    except ValueError:
        return message
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return error.get("message") or message
        if isinstance(error, str):
            return payload.get("error_description") or payload.get("message") or error
        return payload.get("message") or message
    return message
