from __future__ import annotations

import re

from app.ai.errors import InvalidLatexError

_LATEX_FENCE_START = re.compile(r"^```(?:latex|tex)?\n?", re.IGNORECASE)
_JSON_FENCE_START = re.compile(r"^```(?:json)?\n?", re.IGNORECASE)
_FENCE_END = re.compile(r"\n?```$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

_DOCUMENT_CLASS = "\\documentclass"
_END_DOCUMENT = "\\end{document}"


def clean_and_validate_latex(raw_latex: str) -> str:
    """Strip fences and chatter around a LaTeX document and check it is complete."""
    latex = raw_latex.strip()
    latex = _FENCE_END.sub("", _LATEX_FENCE_START.sub("", latex))

    doc_class_index = latex.find(_DOCUMENT_CLASS)
    if doc_class_index > 0:
        latex = latex[doc_class_index:]

    end_doc_index = latex.find(_END_DOCUMENT)
    if end_doc_index > 0:
        latex = latex[: end_doc_index + len(_END_DOCUMENT)]

    if _DOCUMENT_CLASS not in latex:
        raise InvalidLatexError(
            "AI did not return valid LaTeX (missing \\documentclass). Please try uploading again."
        )
    if _END_DOCUMENT not in latex:
        raise InvalidLatexError(
            "AI returned incomplete LaTeX (missing \\end{document}). "
            "Your document may be too long. Try a shorter version."
        )
    return latex


def clean_json_response(response: str) -> str:
    text = response.strip()
    return _FENCE_END.sub("", _JSON_FENCE_START.sub("", text)).strip()


def extract_json_from_text(text: str) -> str | None:
    match = _JSON_OBJECT.search(text)
    return match.group(0) if match else None
