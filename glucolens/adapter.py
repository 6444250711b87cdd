# glucolens/adapter.py
# The request boundary: method/config/input checks, pipeline run, and the mapping of
# every failure to a JSON error body. Nothing raised inside escapes handle().

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from glucolens.errors import AdapterError, InvalidInput, MethodNotAllowed, UpstreamFault
from glucolens.inference import InferenceService, get_inference_service
from glucolens.pipeline import run_pipeline
from glucolens.schemas import AnalysisPayload, AnalysisRequest, AnalysisResult
from glucolens.settings import Settings, get_settings

logger = logging.getLogger(__name__)

Body = Union[str, bytes, bytearray, Dict[str, Any], None]

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class AdapterResponse:
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @classmethod
    def success(cls, result: AnalysisResult) -> "AdapterResponse":
        return cls(200, result.to_json_dict())

    @classmethod
    def failure(cls, err: AdapterError) -> "AdapterResponse":
        return cls(err.status_code, err.to_body())

    def to_event(self) -> Dict[str, Any]:
        """Serverless (Netlify/Lambda) response shape."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": json.dumps(self.body, ensure_ascii=False),
        }


# -----------------------------------------------------------------------------
# Input parsing
# -----------------------------------------------------------------------------
def _load_json(body: Body) -> Any:
    if body is None:
        raise InvalidInput(detail="Empty body")
    if isinstance(body, dict):
        return body
    if isinstance(body, (bytes, bytearray)):
        try:
            body = bytes(body).decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidInput("요청 형식이 올바르지 않습니다.", detail="Body is not UTF-8")
    if not body.strip():
        raise InvalidInput(detail="Empty body")
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise InvalidInput("요청 형식이 올바르지 않습니다.", detail=f"Body is not JSON: {e}")


def parse_request(body: Body, st: Settings) -> AnalysisRequest:
    """
    Turn the raw POST body into a decoded AnalysisRequest.
    Every problem is reported as InvalidInput (400) with a message the app can show.
    """
    payload = _load_json(body)
    if not isinstance(payload, dict):
        raise InvalidInput("요청 형식이 올바르지 않습니다.", detail=f"Body is {type(payload).__name__}, not an object")

    try:
        parsed = AnalysisPayload.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidInput(detail=f"Missing or empty fields: {fields}")

    if parsed.mime_type not in st.ALLOWED_MIME_TYPES:
        raise InvalidInput("지원하지 않는 이미지 형식입니다.", detail=f"Unsupported mimeType {parsed.mime_type!r}")

    try:
        image_data = base64.b64decode("".join(parsed.image_base64.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInput("이미지 데이터를 읽을 수 없습니다.", detail=f"imageBase64 is not valid base64: {e}")

    if not image_data:
        raise InvalidInput(detail="imageBase64 decoded to zero bytes")
    if len(image_data) > st.MAX_IMAGE_BYTES:
        raise InvalidInput(
            "이미지 크기가 너무 큽니다.",
            detail=f"Image is {len(image_data)} bytes, limit {st.MAX_IMAGE_BYTES}",
        )
    return AnalysisRequest(image_data=image_data, mime_type=parsed.mime_type)


# -----------------------------------------------------------------------------
# Adapter
# -----------------------------------------------------------------------------
class InferenceAdapter:
    """
    Turns one inbound request into one AnalysisResult or one classified error.

    `service` is normally the process-wide Gemini service; it is resolved lazily
    so a missing credential is reported before any client is built.
    """

    def __init__(self, settings: Optional[Settings] = None, service: Optional[InferenceService] = None) -> None:
        self.settings = settings or get_settings()
        self._service = service

    @property
    def service(self) -> InferenceService:
        if self._service is None:
            self._service = get_inference_service()
        return self._service

    def check_config(self) -> None:
        st = self.settings
        st.require_api_key()
        st.require_strategy()
        st.require_limits()

    async def handle(self, method: str, body: Body) -> AdapterResponse:
        request_id = uuid.uuid4().hex[:8]
        start = time.perf_counter()

        try:
            if (method or "").upper() != "POST":
                raise MethodNotAllowed(detail=f"Got {method!r}")
            self.check_config()
            request = parse_request(body, self.settings)
            logger.info(
                "[%s] Analyzing %s image (%d bytes, strategy=%s)",
                request_id,
                request.mime_type,
                len(request.image_data),
                self.settings.ANALYSIS_STRATEGY,
            )
            result = await run_pipeline(self.service, request, self.settings)
        except AdapterError as e:
            self._log_failure(request_id, start, e)
            return AdapterResponse.failure(e)
        except Exception:
            logger.exception("[%s] Unexpected error during analysis", request_id)
            return AdapterResponse.failure(UpstreamFault())

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "[%s] Completed in %dms: %s -> %s",
            request_id,
            elapsed_ms,
            result.nutrition.food_name,
            result.impact.level.value,
        )
        return AdapterResponse.success(result)

    @staticmethod
    def _log_failure(request_id: str, start: float, err: AdapterError) -> None:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        level = logging.WARNING if err.status_code < 500 else logging.ERROR
        logger.log(
            level,
            "[%s] Failed(%s) after %dms: %s",
            request_id,
            err.kind,
            elapsed_ms,
            err.detail or err.message,
        )
