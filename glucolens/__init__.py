# glucolens/__init__.py
# Meal photo -> nutrition + glycemic impact, via Gemini structured output.

from .adapter import AdapterResponse, InferenceAdapter, parse_request
from .handler import handler
from .schemas import AnalysisResult, ImpactAssessment, ImpactLevel, NutritionReport

__all__ = [
    "AdapterResponse",
    "InferenceAdapter",
    "parse_request",
    "handler",
    "AnalysisResult",
    "ImpactAssessment",
    "ImpactLevel",
    "NutritionReport",
]
