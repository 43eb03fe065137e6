import re

from smartcapture.cloud.models import Entity
from smartcapture.documents.models import DocumentType, TableStructure
from smartcapture.templates.base import BaseTemplateAnalyzer
from smartcapture.templates.extraction import format_number, table_pairs, to_float
from smartcapture.templates.models import (
    FindingStatus,
    Interpretation,
    TemplateAnalysisResult,
    TemplateFinding,
    Visualization,
    VisualizationType,
)

# nutrient -> (label pattern, unit, daily value)
NUTRIENTS: dict[str, tuple[str, str, str | None]] = {
    "Calories": (r"Calories", "kcal", None),
    "Total Fat": (r"Total\s+Fat", "g", "< 78 g/day"),
    "Saturated Fat": (r"Saturated\s+Fat", "g", "< 20 g/day"),
    "Cholesterol": (r"Cholesterol", "mg", None),
    "Sodium": (r"Sodium", "mg", "< 2300 mg/day"),
    "Carbohydrates": (r"(?:Total\s+)?Carbohydrates?", "g", "275 g/day"),
    "Fiber": (r"(?:Dietary\s+)?Fiber", "g", None),
    "Sugars": (r"(?:Total\s+)?Sugars", "g", None),
    "Protein": (r"Protein", "g", "50 g/day"),
}

HIGH_THRESHOLDS: dict[str, float] = {
    "Sodium": 20,
    "Saturated Fat": 13,
    "Sugars": 25,
}

HIGH_CALORIES = 400
MACRONUTRIENTS = ("Total Fat", "Carbohydrates", "Protein")


def extract_nutrition_facts(text: str, tables: list[TableStructure]) -> dict[str, float]:
    facts: dict[str, float] = {}
    pairs = table_pairs(tables)
    for nutrient, (label, _, _) in NUTRIENTS.items():
        match = re.search(rf"\b{label}[:\s]*(\d+(?:\.\d+)?)", text, re.IGNORECASE)
        if match is not None:
            facts[nutrient] = float(match.group(1))
            continue
        for row_label, raw in pairs:
            if re.fullmatch(label, row_label, re.IGNORECASE):
                number = re.match(r"\d+(?:\.\d+)?", raw)
                value = to_float(number.group()) if number else None
                if value is not None:
                    facts[nutrient] = value
                    break
    return facts


def nutrient_status(nutrient: str, value: float) -> FindingStatus:
    threshold = HIGH_THRESHOLDS.get(nutrient)
    if threshold is not None and value > threshold:
        return FindingStatus.ABNORMAL_HIGH
    return FindingStatus.NORMAL


class FoodLabelAnalyzer(BaseTemplateAnalyzer):
    def analyze(
        self,
        document_type: DocumentType,
        text: str,
        tables: list[TableStructure],
        entities: list[Entity],
    ) -> TemplateAnalysisResult:
        facts = extract_nutrition_facts(text, tables)
        findings = [
            TemplateFinding(
                category="Nutrition",
                key=nutrient,
                value=format_number(value),
                status=nutrient_status(nutrient, value),
                unit=NUTRIENTS[nutrient][1],
                normal_range=NUTRIENTS[nutrient][2],
            )
            for nutrient, value in facts.items()
        ]

        interpretations: list[Interpretation] = []
        calories = facts.get("Calories")
        if calories is not None and calories > HIGH_CALORIES:
            interpretations.append(
                Interpretation(
                    title="High Calorie Content",
                    description=(
                        f"This product contains {format_number(calories)} calories per "
                        "serving, which is relatively high."
                    ),
                    confidence=0.95,
                    sources=["FDA nutrition guidelines"],
                )
            )
        for nutrient in HIGH_THRESHOLDS:
            value = facts.get(nutrient)
            if value is not None and nutrient_status(nutrient, value) is FindingStatus.ABNORMAL_HIGH:
                interpretations.append(
                    Interpretation(
                        title=f"High {nutrient}",
                        description=(
                            f"This product contains high levels of {nutrient.lower()}. "
                            "Consider limiting intake if you are watching it."
                        ),
                        confidence=0.9,
                    )
                )

        macros = {name: facts[name] for name in MACRONUTRIENTS if name in facts}
        visualization = None
        if macros:
            visualization = Visualization(
                type=VisualizationType.PIE_CHART,
                title="Macronutrient Distribution",
                data=macros,
            )

        return TemplateAnalysisResult(
            template_type=DocumentType.FOOD_LABEL,
            findings=findings,
            interpretations=interpretations,
            recommendations=[
                "Consider serving size when planning meals",
                "Balance with low-calorie, nutrient-dense foods",
            ],
            visualization=visualization,
        )
