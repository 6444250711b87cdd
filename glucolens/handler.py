# glucolens/handler.py
# Serverless entrypoint (Netlify Functions / AWS Lambda proxy events).
#   event:  {"httpMethod": "POST", "body": "...", "isBase64Encoded": false, ...}
#   return: {"statusCode": int, "headers": {...}, "body": "<json>"}

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from glucolens.adapter import AdapterResponse, InferenceAdapter
from glucolens.errors import InvalidInput
from glucolens.settings import configure_logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    One loop per warm container. The Gemini async client pools connections on the
    loop that first used them, so every invocation must run on that same loop.
    """
    return asyncio.new_event_loop()


@lru_cache(maxsize=1)
def get_adapter() -> InferenceAdapter:
    """One adapter per warm container; settings and client are reused across invocations."""
    configure_logging()
    return InferenceAdapter()


def handler(event: Dict[str, Any], context: Optional[Any] = None, adapter: Optional[InferenceAdapter] = None) -> Dict[str, Any]:
    adapter = adapter or get_adapter()
    method = event.get("httpMethod") or ((event.get("requestContext") or {}).get("http") or {}).get("method", "")
    body = event.get("body")

    # Non-POST bodies are never read; the adapter answers 405 first.
    if body and event.get("isBase64Encoded") and str(method).upper() == "POST":
        try:
            body = base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Could not decode base64-encoded event body")
            return AdapterResponse.failure(InvalidInput("요청 형식이 올바르지 않습니다.")).to_event()

    response = get_event_loop().run_until_complete(adapter.handle(method, body))
    return response.to_event()
