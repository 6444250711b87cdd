# glucolens/errors.py
# Error taxonomy for the analysis adapter. Each error knows its HTTP status and
# the message the client app is allowed to see.

from __future__ import annotations

from typing import Optional


class AdapterError(Exception):
    """
    Base class for every classified failure.
    `message` is what the caller sees; `detail` is for the server log only.
    """

    kind: str = "AdapterError"
    status_code: int = 500
    default_message: str = "서버에서 AI 분석 중 알 수 없는 오류가 발생했습니다."

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)

    def to_body(self) -> dict:
        return {"error": self.message}


class MethodNotAllowed(AdapterError):
    kind = "MethodNotAllowed"
    status_code = 405
    default_message = "Method Not Allowed"


class ConfigurationError(AdapterError):
    """Deployment problem (missing/invalid credential or setting). Never a client fault."""

    kind = "ConfigurationError"
    status_code = 500
    default_message = "서버 설정 오류로 분석을 진행할 수 없습니다."


class InvalidInput(AdapterError):
    kind = "InvalidInput"
    status_code = 400
    default_message = "이미지 데이터가 없습니다."


class UpstreamFault(AdapterError):
    kind = "UpstreamFault"
    status_code = 500


class UpstreamTimeout(UpstreamFault):
    kind = "UpstreamTimeout"
    status_code = 504
    default_message = "AI 분석 시간이 초과되었습니다. 잠시 후 다시 시도해주세요."


class InvalidUpstreamResponse(AdapterError):
    kind = "InvalidUpstreamResponse"
    status_code = 500
    default_message = "AI가 올바르지 않은 분석 결과를 반환했습니다."
