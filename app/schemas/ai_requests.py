from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.ai import ExtractedCVContent, JobAnalysisResult


class AnalyzeJobRequest(BaseModel):
    job_description: str = Field(min_length=1, max_length=50000)
    user_cv: str = Field(min_length=1, max_length=50000)
    model: str | None = None


class CoverLetterRequest(BaseModel):
    analysis: JobAnalysisResult
    user_cv: str = Field(min_length=1, max_length=50000)
    model: str | None = None


class ATSRequest(BaseModel):
    latex: str = Field(min_length=1, max_length=200000)
    model: str | None = None


class ModifyLatexRequest(BaseModel):
    latex: str = Field(min_length=1, max_length=200000)
    instruction: str = Field(min_length=1, max_length=5000)
    model: str | None = None


class RegenerateTemplateRequest(BaseModel):
    content: ExtractedCVContent
    template_id: str = Field(min_length=1, max_length=100)
