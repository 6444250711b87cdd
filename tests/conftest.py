import asyncio
import base64
import copy
import json
import os
from unittest.mock import patch

import pytest

from glucolens.inference import get_inference_service
from glucolens.settings import Settings, get_settings

TEST_KEY = "AIzaSyTestKey_0123456789abcdefghijklmn"

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-payload"

NUTRITION = {
    "foodName": "비빔밥",
    "calories": 560,
    "carbohydrates": {"total": 45, "sugars": 10, "fiber": 5},
    "protein": 22,
    "fat": 14,
    "glycemicIndex": 62,
}

IMPACT = {
    "level": "MODERATE",
    "explanation": "탄수화물이 적당하고 식이섬유가 있어 혈당이 완만하게 오를 수 있어요.",
}


class StubInference:
    """Records every call and replays canned replies (str) or raises them (Exception)."""

    def __init__(self, *replies, delay=0.0):
        self.replies = list(replies)
        self.delay = delay
        self.calls = []

    async def generate(self, image, prompt, schema):
        self.calls.append({"image": image, "prompt": prompt, "schema": schema})
        if self.delay:
            await asyncio.sleep(self.delay)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def clear_caches():
    get_settings.cache_clear()
    get_inference_service.cache_clear()
    yield
    get_settings.cache_clear()
    get_inference_service.cache_clear()


@pytest.fixture
def env():
    """Clean environment with a valid-looking Gemini key."""
    values = {"GEMINI_API_KEY": TEST_KEY}
    with patch.dict(os.environ, values, clear=True):
        yield values


@pytest.fixture
def settings(env):
    return Settings()


@pytest.fixture
def two_step_settings(settings):
    settings.ANALYSIS_STRATEGY = "two_step"
    return settings


@pytest.fixture
def combined_payload():
    return {"nutrition": copy.deepcopy(NUTRITION), "impact": copy.deepcopy(IMPACT)}


@pytest.fixture
def nutrition_payload():
    return copy.deepcopy(NUTRITION)


@pytest.fixture
def impact_payload():
    return copy.deepcopy(IMPACT)


@pytest.fixture
def post_body():
    return json.dumps({
        "imageBase64": base64.b64encode(JPEG_BYTES).decode("ascii"),
        "mimeType": "image/jpeg",
    })


@pytest.fixture
def make_stub():
    return StubInference
