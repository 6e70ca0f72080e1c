"""CV and job-application AI operations.

Every operation goes through ``Orchestrator.run`` so model selection, fallback
and run logging behave the same everywhere.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from app.ai.errors import EmptyResponseError
from app.ai.orchestrator import ExtractionResult, Orchestrator, get_orchestrator
from app.ai.prompts import (
    CV_CONTENT_EXTRACTION_PROMPT,
    CV_EXTRACTION_PROMPT,
    CV_TEXT_MAX_CHARS,
    analysis_prompt,
    ats_analysis_prompt,
    cover_letter_prompt,
    cv_text_prompt,
    latex_modify_prompt,
)
from app.ai.types import AIClient, CredentialOptions, DocumentInput
from app.ai.utils import clean_and_validate_latex
from app.schemas.ai import (
    ATSAnalysisResult,
    ExtractedCVContent,
    JobAnalysisResult,
    ParsedCVData,
    parse_ats_analysis,
    parse_cv_data,
    parse_extracted_content,
    parse_job_analysis,
)
from app.services.cv_templates import generate_latex_from_content, get_template

logger = logging.getLogger(__name__)

ANALYSIS_TOKEN_BUDGET = 2000
COVER_LETTER_TOKEN_BUDGET = 1000
CV_PARSE_TOKEN_BUDGET = 2000
CONTENT_TOKEN_BUDGET = 16384
LATEX_TOKEN_BUDGET = 16384


@dataclass(frozen=True)
class TemplateExtraction:
    content: ExtractedCVContent
    latex: str
    template_id: str


def _document(buffer: bytes, mime_type: str) -> DocumentInput:
    return DocumentInput(data=base64.b64encode(buffer).decode("ascii"), mime_type=mime_type)


def _resolve(orchestrator: Optional[Orchestrator]) -> Orchestrator:
    return orchestrator or get_orchestrator()


def _non_empty_text(raw: str) -> str:
    text = (raw or "").strip()
    if not text:
        raise EmptyResponseError("AI returned an empty response")
    return text


async def extract_latex_with_model(
    buffer: bytes,
    mime_type: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[str]:
    document = _document(buffer, mime_type)

    async def call(client: AIClient) -> str:
        return await client.extract_latex(document)

    return await _resolve(orchestrator).run(
        "extract_latex",
        call,
        clean_and_validate_latex,
        model=model,
        credentials=credentials,
    )


async def extract_with_template(
    buffer: bytes,
    mime_type: str,
    template_id: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[TemplateExtraction]:
    """Extract structured CV content once, then render it with a local template."""
    get_template(template_id)
    document = _document(buffer, mime_type)

    async def call(client: AIClient) -> str:
        generation = await client.generate(
            CV_CONTENT_EXTRACTION_PROMPT,
            document=document,
            max_output_tokens=CONTENT_TOKEN_BUDGET,
        )
        return generation.text

    def parse(raw: str) -> TemplateExtraction:
        content = parse_extracted_content(raw)
        latex = generate_latex_from_content(content, template_id)
        return TemplateExtraction(content=content, latex=latex, template_id=template_id)

    return await _resolve(orchestrator).run(
        "extract_with_template",
        call,
        parse,
        model=model,
        credentials=credentials,
    )


def regenerate_with_template(content: ExtractedCVContent, template_id: str) -> str:
    return generate_latex_from_content(content, template_id)


async def parse_cv(
    buffer: bytes,
    mime_type: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[ParsedCVData]:
    document = _document(buffer, mime_type)

    async def call(client: AIClient) -> str:
        generation = await client.generate(
            CV_EXTRACTION_PROMPT,
            document=document,
            max_output_tokens=CV_PARSE_TOKEN_BUDGET,
        )
        return generation.text

    return await _resolve(orchestrator).run(
        "parse_cv",
        call,
        parse_cv_data,
        model=model,
        credentials=credentials,
    )


async def parse_cv_text(
    cv_text: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[ParsedCVData]:
    if len(cv_text) > CV_TEXT_MAX_CHARS:
        logger.info("ai_cv_text_truncated chars=%s limit=%s", len(cv_text), CV_TEXT_MAX_CHARS)
    prompt = cv_text_prompt(cv_text[:CV_TEXT_MAX_CHARS])

    async def call(client: AIClient) -> str:
        generation = await client.generate(prompt, max_output_tokens=CV_PARSE_TOKEN_BUDGET)
        return generation.text

    return await _resolve(orchestrator).run(
        "parse_cv_text",
        call,
        parse_cv_data,
        model=model,
        credentials=credentials,
    )


async def analyze_job(
    job_description: str,
    user_cv: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[JobAnalysisResult]:
    prompt = analysis_prompt(job_description, user_cv)

    async def call(client: AIClient) -> str:
        generation = await client.generate(prompt, max_output_tokens=ANALYSIS_TOKEN_BUDGET)
        return generation.text

    return await _resolve(orchestrator).run(
        "analyze_job",
        call,
        parse_job_analysis,
        model=model,
        credentials=credentials,
    )


async def generate_cover_letter(
    analysis: JobAnalysisResult,
    user_cv: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[str]:
    prompt = cover_letter_prompt(analysis, user_cv)

    async def call(client: AIClient) -> str:
        generation = await client.generate(prompt, max_output_tokens=COVER_LETTER_TOKEN_BUDGET)
        return generation.text

    return await _resolve(orchestrator).run(
        "cover_letter",
        call,
        _non_empty_text,
        model=model,
        credentials=credentials,
    )


async def analyze_ats_compliance(
    latex_content: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[ATSAnalysisResult]:
    prompt = ats_analysis_prompt(latex_content)

    async def call(client: AIClient) -> str:
        generation = await client.generate(prompt, max_output_tokens=LATEX_TOKEN_BUDGET)
        return generation.text

    return await _resolve(orchestrator).run(
        "ats_analysis",
        call,
        parse_ats_analysis,
        model=model,
        credentials=credentials,
    )


async def modify_latex(
    current_latex: str,
    instruction: str,
    *,
    model: str | None = None,
    credentials: CredentialOptions | None = None,
    orchestrator: Optional[Orchestrator] = None,
) -> ExtractionResult[str]:
    prompt = latex_modify_prompt(current_latex, instruction)

    async def call(client: AIClient) -> str:
        generation = await client.generate(prompt, max_output_tokens=LATEX_TOKEN_BUDGET)
        return generation.text

    return await _resolve(orchestrator).run(
        "modify_latex",
        call,
        clean_and_validate_latex,
        model=model,
        credentials=credentials,
    )
