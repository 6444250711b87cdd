# glucolens/inference.py
# Structured inference capability: photo + prompt + schema in, schema-shaped JSON text out.
# The Gemini client is built once per process and shared by every request.

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Optional

# Gemini (google-genai) client
from google import genai
from google.genai import errors, types

from glucolens.errors import UpstreamFault
from glucolens.settings import get_settings, mask_secret

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePart:
    data: bytes
    mime_type: str


class InferenceService:
    """
    Given an image, a prompt and a schema declaration, return JSON text that
    conforms to the schema, or raise.
    """

    async def generate(self, image: ImagePart, prompt: str, schema: Dict[str, Any]) -> str:
        raise NotImplementedError


class GeminiInference(InferenceService):
    def __init__(self, api_key: str, model: str, client: Optional[genai.Client] = None) -> None:
        self.model = model
        self._api_key = api_key
        self.client = client or genai.Client(api_key=api_key)
        logger.info("Gemini client ready (model=%s, key=%s)", model, mask_secret(api_key))

    def _scrub(self, message: str) -> str:
        return message.replace(self._api_key, mask_secret(self._api_key)) if self._api_key else message

    async def generate(self, image: ImagePart, prompt: str, schema: Dict[str, Any]) -> str:
        image_part = types.Part.from_bytes(data=image.data, mime_type=image.mime_type)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )
        try:
            resp = await self.client.aio.models.generate_content(
                model=self.model,
                contents=[prompt, image_part],
                config=config,
            )
        except errors.APIError as e:
            message = self._scrub(e.message or str(e))
            raise UpstreamFault(message, detail=f"Gemini API error {e.code}: {message}")

        text = resp.text or ""
        if not text:
            # Blocked or empty candidates; the validator reports it as an invalid reply.
            logger.warning("Gemini returned no text (model=%s)", self.model)
        return text


@lru_cache(maxsize=1)
def get_inference_service() -> GeminiInference:
    """
    Process-wide Gemini-backed service. Call only after the credential check has
    passed; a missing key raises ConfigurationError here.
    """
    st = get_settings()
    return GeminiInference(api_key=st.require_api_key(), model=st.GEMINI_MODEL)
