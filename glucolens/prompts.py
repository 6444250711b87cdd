# glucolens/prompts.py
# Prompt text sent alongside the photo. Kept apart from the call code so the wording
# can be tuned without touching request handling.

from __future__ import annotations

from glucolens.schemas import NutritionReport

_ROLE = "You are a dietitian who works with people living with diabetes."

_LEVELS = (
    "Classify the expected effect on the blood glucose of a typical person with diabetes as exactly one of "
    "'STABLE', 'MODERATE' or 'HIGH'."
)


def _num(value: float) -> str:
    """45.0 -> '45', 12.5 -> '12.5'."""
    return f"{value:g}"


def combined_prompt(language: str = "Korean") -> str:
    return (
        f"{_ROLE} Analyze the food in this image.\n"
        "1. Identify the dishes, estimate the portion sizes, and calculate the expected nutrition "
        "for the whole meal.\n"
        f"2. Based on that nutrition: {_LEVELS} "
        f"Explain the reason in short, simple {language}.\n"
        "Respond in JSON containing both results: 'nutrition' and 'impact'."
    )


def nutrition_prompt() -> str:
    return (
        f"{_ROLE} Analyze the food in this image.\n"
        "Identify the dishes, estimate the portion sizes, and calculate the expected nutrition for the "
        "whole meal: calories, carbohydrates (total, sugars, fiber), protein, fat and the estimated "
        "glycemic index (1-100).\n"
        "Respond in JSON only."
    )


def impact_prompt(nutrition: NutritionReport, language: str = "Korean") -> str:
    """Second-step prompt, grounded in the numbers parsed from the first step."""
    carbs = nutrition.carbohydrates
    return (
        f"{_ROLE} A meal was analyzed with these results:\n"
        f"- Food: {nutrition.food_name}\n"
        f"- Total carbohydrates: {_num(carbs.total)} g\n"
        f"- Sugars: {_num(carbs.sugars)} g\n"
        f"- Fiber: {_num(carbs.fiber)} g\n"
        f"- Glycemic index: {_num(nutrition.glycemic_index)}\n"
        f"{_LEVELS} Explain the reason in short, simple {language}.\n"
        "Respond in JSON only."
    )
