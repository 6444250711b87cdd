# glucolens/pipeline.py
# Photo -> Gemini -> validated AnalysisResult.
# Two interchangeable strategies; ANALYSIS_STRATEGY picks one per deployment.

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel

from glucolens.declarations import declare_schema, parse_structured
from glucolens.errors import AdapterError, UpstreamFault, UpstreamTimeout
from glucolens.inference import ImagePart, InferenceService
from glucolens.prompts import combined_prompt, impact_prompt, nutrition_prompt
from glucolens.schemas import AnalysisRequest, AnalysisResult, ImpactAssessment, NutritionReport
from glucolens.settings import Settings, get_settings

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


async def infer(
    service: InferenceService,
    image: ImagePart,
    prompt: str,
    model: Type[M],
    timeout: float,
) -> M:
    """
    One bounded call to the inference service, validated against `model`.
    Timeout -> UpstreamTimeout; anything unexpected from the service -> UpstreamFault.
    """
    schema = declare_schema(model)
    try:
        text = await asyncio.wait_for(service.generate(image, prompt, schema), timeout=timeout)
    except asyncio.TimeoutError:
        raise UpstreamTimeout(detail=f"{model.__name__} call exceeded {timeout:g}s")
    except AdapterError:
        raise
    except Exception as e:
        raise UpstreamFault(detail=f"{model.__name__} call failed: {type(e).__name__}: {e}")
    return parse_structured(text, model)


async def analyze_single(service: InferenceService, request: AnalysisRequest, st: Settings) -> AnalysisResult:
    """One call with the combined nutrition+impact schema."""
    image = ImagePart(request.image_data, request.mime_type)
    return await infer(
        service,
        image,
        combined_prompt(st.EXPLANATION_LANGUAGE),
        AnalysisResult,
        st.INFERENCE_TIMEOUT,
    )


async def analyze_two_step(service: InferenceService, request: AnalysisRequest, st: Settings) -> AnalysisResult:
    """
    Nutrition first, then impact from the parsed numbers.
    The second call is never made if the first one fails or returns an invalid report.
    """
    image = ImagePart(request.image_data, request.mime_type)
    timeout = st.INFERENCE_TIMEOUT

    nutrition = await infer(service, image, nutrition_prompt(), NutritionReport, timeout)
    logger.debug("Nutrition step done: %s", nutrition.food_name)

    impact = await infer(
        service,
        image,
        impact_prompt(nutrition, st.EXPLANATION_LANGUAGE),
        ImpactAssessment,
        timeout,
    )
    return AnalysisResult(nutrition=nutrition, impact=impact)


Strategy = Callable[[InferenceService, AnalysisRequest, Settings], Awaitable[AnalysisResult]]

STRATEGIES: Dict[str, Strategy] = {
    "single": analyze_single,
    "two_step": analyze_two_step,
}


async def run_pipeline(
    service: InferenceService,
    request: AnalysisRequest,
    st: Optional[Settings] = None,
) -> AnalysisResult:
    """
    High-level helper: pick the configured strategy and run it.
    Raises AdapterError subclasses only.
    """
    st = st or get_settings()
    strategy = STRATEGIES[st.require_strategy()]
    return await strategy(service, request, st)
