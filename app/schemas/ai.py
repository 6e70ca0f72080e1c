from __future__ import annotations

import json
import logging
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.ai.errors import InvalidJSONError, SchemaValidationError
from app.ai.utils import clean_json_response, extract_json_from_text

logger = logging.getLogger(__name__)

IssueSeverity = Literal["error", "warning", "info"]


def clamp_score(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(round(min(100.0, max(0.0, number))))


class AIModel(BaseModel):
    """Lenient base for AI output: nulls fall back to the field default."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class JobAnalysisResult(AIModel):
    company: str = "Unknown Company"
    role: str = "Unknown Role"
    match_score: int = 0
    top_requirements: list[str] = Field(default_factory=list)
    skills_match: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    red_flags: list[str] = Field(default_factory=list)
    key_points: list[str] = Field(default_factory=list)

    @field_validator("match_score", mode="before")
    @classmethod
    def _clamp_match_score(cls, value: Any) -> int:
        return clamp_score(value)


class ParsedCVData(AIModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    summary: str = ""
    experience: str = ""
    skills: str = ""


class ATSIssue(AIModel):
    severity: IssueSeverity = "info"
    message: str
    suggestion: str = ""

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value: Any) -> str:
        normalized = str(value).strip().lower()
        return normalized if normalized in {"error", "warning", "info"} else "info"


class ATSAnalysisResult(AIModel):
    score: int = 0
    issues: list[ATSIssue] = Field(default_factory=list)
    summary: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        return clamp_score(value)


class CVContact(AIModel):
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None


class SkillCategory(AIModel):
    category: str = ""
    items: str = ""


class ExperienceEntry(AIModel):
    title: str = ""
    company: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""
    bullets: list[str] = Field(default_factory=list)


class EducationEntry(AIModel):
    degree: str = ""
    institution: str = ""
    start_date: str = ""
    end_date: str = ""


class ProjectEntry(AIModel):
    name: str = ""
    url: str | None = None
    bullets: list[str] = Field(default_factory=list)


class LanguageEntry(AIModel):
    language: str = ""
    level: str = ""


class ExtractedCVContent(AIModel):
    name: str = Field(min_length=1)
    title: str = Field(min_length=1)
    contact: CVContact = Field(default_factory=CVContact)
    summary: str = ""
    skills: list[SkillCategory] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    projects: list[ProjectEntry] | None = None
    certifications: list[str] | None = None
    languages: list[LanguageEntry] | None = None

    @field_validator("name", "title", mode="before")
    @classmethod
    def _strip_identity(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


ModelT = TypeVar("ModelT", bound=BaseModel)


def _issue_path(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "(root)"


def validate_payload(payload: Any, model: type[ModelT], context: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        issues = [(_issue_path(error["loc"]), error["msg"]) for error in exc.errors()]
        logger.warning("ai_schema_invalid context=%s issues=%s", context, issues)
        raise SchemaValidationError(context, issues) from exc


def parse_json_or_raise(raw_text: str, model: type[ModelT], context: str) -> ModelT:
    """Clean fences, decode JSON and validate it against ``model``."""
    json_text = clean_json_response(raw_text)
    try:
        payload = json.loads(json_text)
    except json.JSONDecodeError:
        embedded = extract_json_from_text(json_text)
        try:
            payload = json.loads(embedded) if embedded else None
        except json.JSONDecodeError:
            payload = None
        if payload is None:
            logger.warning("ai_invalid_json context=%s preview=%s", context, json_text[:500])
            raise InvalidJSONError(f"{context}: invalid JSON response from AI") from None

    if not isinstance(payload, dict):
        raise SchemaValidationError(context, [("(root)", "Expected a JSON object")])
    return validate_payload(payload, model, context)


def parse_job_analysis(raw_text: str) -> JobAnalysisResult:
    return parse_json_or_raise(raw_text, JobAnalysisResult, "Job analysis")


def parse_cv_data(raw_text: str) -> ParsedCVData:
    return parse_json_or_raise(raw_text, ParsedCVData, "CV parsing")


def parse_ats_analysis(raw_text: str) -> ATSAnalysisResult:
    return parse_json_or_raise(raw_text, ATSAnalysisResult, "ATS compliance analysis")


def parse_extracted_content(raw_text: str) -> ExtractedCVContent:
    return parse_json_or_raise(raw_text, ExtractedCVContent, "CV content extraction")
