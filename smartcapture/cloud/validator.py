"""Explicit schema checks turning provider JSON into result models.

Every mismatch raises ``ParseError``; nothing is silently defaulted except
fields documented as optional.
"""

import json
from typing import Any

from smartcapture.cloud.exceptions import ParseError
from smartcapture.cloud.models import (
    ActionItem,
    ActionPriority,
    CheckStatus,
    CloudOcrResult,
    ComplianceAnalysis,
    ComplianceCheck,
    Entity,
    MedicalCode,
    RiskFlag,
    Severity,
    VisionAnalysis,
)
from smartcapture.documents.models import BoundingBox, TableStructure, TextBlock, TextBlockType

_STATUS_ALIASES = {"n/a": "not_applicable", "na": "not_applicable"}


def parse_json_object(raw: str) -> dict[str, Any]:
    """Decode a JSON object, tolerating a surrounding Markdown code fence."""
    cleaned = raw.strip()
    if cleaned.startswith("```"):
        lines = cleaned.splitlines()
        if lines and lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON response: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ParseError("JSON response must be an object")
    return parsed


# ----------------------------------------------------------------------
# Field helpers
# ----------------------------------------------------------------------


def _str(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ParseError(f"'{where}.{key}' must be a string")
    return value


def _optional_str(data: dict[str, Any], key: str, where: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ParseError(f"'{where}.{key}' must be a string or null")
    return value


def _number(data: dict[str, Any], key: str, where: str, default: float | None = None) -> float:
    value = data.get(key)
    if value is None and default is not None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"'{where}.{key}' must be a number")
    return float(value)


def _confidence(data: dict[str, Any], key: str, where: str, default: float | None = None) -> float:
    value = _number(data, key, where, default)
    if not 0.0 <= value <= 1.0:
        raise ParseError(f"'{where}.{key}' must be within [0, 1], got {value}")
    return value


def _list(data: dict[str, Any], key: str, where: str, required: bool = False) -> list[Any]:
    value = data.get(key)
    if value is None and not required:
        return []
    if not isinstance(value, list):
        raise ParseError(f"'{where}.{key}' must be a list")
    return value


def _object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(f"'{where}' must be an object")
    return value


def _enum(enum_cls, raw: Any, where: str, default=None):
    if raw is None and default is not None:
        return default
    if not isinstance(raw, str):
        raise ParseError(f"'{where}' must be a string")
    normalized = raw.strip().lower()
    normalized = _STATUS_ALIASES.get(normalized, normalized)
    try:
        return enum_cls(normalized)
    except ValueError as exc:
        allowed = [member.value for member in enum_cls]
        raise ParseError(f"'{where}' must be one of {allowed}, got '{raw}'") from exc


def _bounding_box(raw: Any, where: str) -> BoundingBox:
    box = _object(raw, where)
    return BoundingBox(
        x=_number(box, "x", where),
        y=_number(box, "y", where),
        width=_number(box, "width", where),
        height=_number(box, "height", where),
    )


# ----------------------------------------------------------------------
# Cloud OCR
# ----------------------------------------------------------------------


def build_ocr_result(data: dict[str, Any], processing_time_ms: int = 0) -> CloudOcrResult:
    blocks = [
        _build_text_block(item, f"text_blocks[{i}]")
        for i, item in enumerate(_list(data, "text_blocks", "ocr"))
    ]
    tables = [
        _build_table(item, f"tables[{i}]") for i, item in enumerate(_list(data, "tables", "ocr"))
    ]
    return CloudOcrResult(
        text=_str(data, "text", "ocr"),
        text_blocks=blocks,
        tables=tables,
        confidence=_confidence(data, "confidence", "ocr"),
        language=_optional_str(data, "detected_language", "ocr", "unknown"),
        processing_time_ms=processing_time_ms,
        model_version=_optional_str(data, "model_version", "ocr"),
    )


def _build_text_block(raw: Any, where: str) -> TextBlock:
    item = _object(raw, where)
    language = item.get("language")
    if language is not None and not isinstance(language, str):
        raise ParseError(f"'{where}.language' must be a string or null")
    return TextBlock(
        text=_str(item, "text", where),
        bounding_box=_bounding_box(item.get("bounding_box"), f"{where}.bounding_box"),
        confidence=_confidence(item, "confidence", where),
        type=_enum(TextBlockType, item.get("type"), f"{where}.type", TextBlockType.PARAGRAPH),
        language=language,
    )


def _build_table(raw: Any, where: str) -> TableStructure:
    item = _object(raw, where)
    rows: list[list[str]] = []
    for r, row in enumerate(_list(item, "rows", where, required=True)):
        if not isinstance(row, list) or not all(isinstance(cell, str) for cell in row):
            raise ParseError(f"'{where}.rows[{r}]' must be a list of strings")
        rows.append(row)
    headers = item.get("headers")
    if headers is not None and (
        not isinstance(headers, list) or not all(isinstance(h, str) for h in headers)
    ):
        raise ParseError(f"'{where}.headers' must be a list of strings or null")
    return TableStructure(
        rows=rows,
        bounding_box=_bounding_box(item.get("bounding_box"), f"{where}.bounding_box"),
        confidence=_confidence(item, "confidence", where),
        headers=headers,
    )


# ----------------------------------------------------------------------
# Vision analysis
# ----------------------------------------------------------------------


def build_vision_analysis(
    data: dict[str, Any],
    default_confidence: float,
    processing_time_ms: int = 0,
    model: str = "",
) -> VisionAnalysis:
    insights = _list(data, "insights", "vision")
    if not all(isinstance(insight, str) for insight in insights):
        raise ParseError("'vision.insights' must be a list of strings")
    actions = [
        _build_action(item, f"actions[{i}]") for i, item in enumerate(_list(data, "actions", "vision"))
    ]
    entities = [
        _build_entity(item, f"entities[{i}]")
        for i, item in enumerate(_list(data, "entities", "vision"))
    ]
    return VisionAnalysis(
        summary=_str(data, "summary", "vision"),
        insights=list(insights),
        action_items=actions,
        entities=entities,
        confidence=_confidence(data, "confidence", "vision", default_confidence),
        processing_time_ms=processing_time_ms,
        model=model,
    )


def _build_action(raw: Any, where: str) -> ActionItem:
    item = _object(raw, where)
    return ActionItem(
        title=_str(item, "title", where),
        description=_optional_str(item, "description", where),
        priority=_enum(ActionPriority, item.get("priority"), f"{where}.priority", ActionPriority.MEDIUM),
        category=_optional_str(item, "category", where, "general"),
    )


def _build_entity(raw: Any, where: str) -> Entity:
    item = _object(raw, where)
    return Entity(
        type=_str(item, "type", where),
        value=_str(item, "value", where),
        confidence=_confidence(item, "confidence", where, 0.8),
    )


# ----------------------------------------------------------------------
# Compliance analysis
# ----------------------------------------------------------------------


def build_compliance_analysis(
    data: dict[str, Any],
    default_confidence: float,
    processing_time_ms: int = 0,
    model: str = "",
) -> ComplianceAnalysis:
    checks = [
        _build_check(item, f"compliance_checks[{i}]")
        for i, item in enumerate(_list(data, "compliance_checks", "compliance"))
    ]
    codes = [
        _build_code(item, f"medical_codes[{i}]")
        for i, item in enumerate(_list(data, "medical_codes", "compliance"))
    ]
    flags = [
        _build_risk_flag(item, f"risk_flags[{i}]")
        for i, item in enumerate(_list(data, "risk_flags", "compliance"))
    ]
    return ComplianceAnalysis(
        summary=_str(data, "summary_en", "compliance"),
        secondary_summary=_optional_str(data, "summary_secondary", "compliance"),
        compliance_checks=checks,
        medical_codes=codes,
        risk_flags=flags,
        confidence=_confidence(data, "confidence", "compliance", default_confidence),
        processing_time_ms=processing_time_ms,
        model=model,
    )


def _build_check(raw: Any, where: str) -> ComplianceCheck:
    item = _object(raw, where)
    return ComplianceCheck(
        rule=_str(item, "rule", where),
        status=_enum(CheckStatus, item.get("status"), f"{where}.status"),
        details=_optional_str(item, "details", where),
        severity=_enum(Severity, item.get("severity"), f"{where}.severity", Severity.LOW),
    )


def _build_code(raw: Any, where: str) -> MedicalCode:
    item = _object(raw, where)
    return MedicalCode(
        system=_str(item, "system", where),
        code=_str(item, "code", where),
        display=_optional_str(item, "display", where),
        confidence=_confidence(item, "confidence", where, 0.0),
    )


def _build_risk_flag(raw: Any, where: str) -> RiskFlag:
    item = _object(raw, where)
    recommendations = _list(item, "recommendations", where)
    if not all(isinstance(rec, str) for rec in recommendations):
        raise ParseError(f"'{where}.recommendations' must be a list of strings")
    return RiskFlag(
        category=_str(item, "category", where),
        description=_str(item, "description", where),
        severity=_enum(Severity, item.get("severity"), f"{where}.severity", Severity.LOW),
        recommendations=list(recommendations),
    )
