"""Response decoding helpers -- map :class:`httpx.Response` to plain data.

:func:`extract_response_data` decodes a successful body for the hydrator;
:func:`error_detail` pulls a human-readable message out of an error body
for :class:`~halclient.exceptions.RequestFailedError`.
"""

from __future__ import annotations

from typing import Any

import httpx


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns
    ``None`` for responses with no content.

    Args:
        response: The :class:`httpx.Response` to extract data from.

    Returns:
        A JSON-decoded object (``dict``, ``list``, etc.), a ``str`` of raw
        text, or ``None`` if the body is empty.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        return response.text


def error_detail(response: httpx.Response) -> str:
    """Return the ``message``/``error``/``detail`` of an error body, or its text."""
    data = extract_response_data(response)
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error") or data.get("detail") or ""
        return str(msg)
    if data is None:
        return ""
    return str(data)[:200]
