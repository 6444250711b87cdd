import pytest
from pydantic import ValidationError

from glucolens.schemas import (
    AnalysisPayload,
    AnalysisResult,
    ImpactAssessment,
    ImpactLevel,
    NutritionReport,
)


class TestImpactAssessment:
    @pytest.mark.parametrize("raw", ["stable", "  stable ", "Stable", "STABLE\n"])
    def test_level_is_normalized(self, raw):
        impact = ImpactAssessment.model_validate({"level": raw, "explanation": "ok"})
        assert impact.level is ImpactLevel.STABLE

    @pytest.mark.parametrize("raw", ["UNKNOWN", "", "LOW", 3, None])
    def test_level_outside_enum_is_rejected(self, raw):
        with pytest.raises(ValidationError):
            ImpactAssessment.model_validate({"level": raw, "explanation": "ok"})

    def test_blank_explanation_is_rejected(self):
        with pytest.raises(ValidationError):
            ImpactAssessment.model_validate({"level": "HIGH", "explanation": "   "})


class TestNutritionReport:
    def test_camel_case_wire_names(self, nutrition_payload):
        report = NutritionReport.model_validate(nutrition_payload)
        assert report.food_name == "비빔밥"
        assert report.glycemic_index == 62
        dumped = report.model_dump(mode="json", by_alias=True)
        assert set(dumped) == {"foodName", "calories", "carbohydrates", "protein", "fat", "glycemicIndex"}

    @pytest.mark.parametrize(
        "field,value",
        [("calories", -1), ("protein", -0.5), ("fat", -3), ("glycemicIndex", 0), ("glycemicIndex", 101)],
    )
    def test_out_of_range_numbers(self, nutrition_payload, field, value):
        nutrition_payload[field] = value
        with pytest.raises(ValidationError):
            NutritionReport.model_validate(nutrition_payload)

    def test_negative_carbohydrate_part(self, nutrition_payload):
        nutrition_payload["carbohydrates"]["sugars"] = -1
        with pytest.raises(ValidationError):
            NutritionReport.model_validate(nutrition_payload)

    def test_fiber_plus_sugars_above_total_is_tolerated(self, nutrition_payload):
        nutrition_payload["carbohydrates"] = {"total": 10, "sugars": 8, "fiber": 6}
        report = NutritionReport.model_validate(nutrition_payload)
        assert report.carbohydrates.total == 10

    def test_missing_field(self, nutrition_payload):
        del nutrition_payload["glycemicIndex"]
        with pytest.raises(ValidationError):
            NutritionReport.model_validate(nutrition_payload)


class TestAnalysisResult:
    def test_json_round_trip(self, combined_payload):
        result = AnalysisResult.model_validate(combined_payload)
        again = AnalysisResult.model_validate_json(result.model_dump_json(by_alias=True))
        assert again == result

    def test_to_json_dict_matches_payload(self, combined_payload):
        result = AnalysisResult.model_validate(combined_payload)
        assert result.to_json_dict() == combined_payload

    def test_both_parts_required(self, combined_payload):
        del combined_payload["impact"]
        with pytest.raises(ValidationError):
            AnalysisResult.model_validate(combined_payload)


class TestAnalysisPayload:
    def test_data_url_prefix_and_mime_case(self):
        payload = AnalysisPayload.model_validate(
            {"imageBase64": " data:image/jpeg;base64,AAAA ", "mimeType": " Image/JPEG "}
        )
        assert payload.image_base64 == "AAAA"
        assert payload.mime_type == "image/jpeg"

    @pytest.mark.parametrize(
        "body",
        [{}, {"imageBase64": "AAAA"}, {"mimeType": "image/png"}, {"imageBase64": "", "mimeType": "image/png"}],
    )
    def test_missing_or_empty(self, body):
        with pytest.raises(ValidationError):
            AnalysisPayload.model_validate(body)
