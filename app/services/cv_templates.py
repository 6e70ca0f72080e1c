"""LaTeX CV templates.

The AI extracts structured content once; any template can then render it
locally without another model call.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from app.schemas.ai import ExtractedCVContent

CVTemplateId = Literal["tech-minimalist", "modern-clean", "contemporary-professional"]

_LATEX_ESCAPES = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def escape_latex(text: str | None) -> str:
    return "".join(_LATEX_ESCAPES.get(char, char) for char in (text or ""))


_COMMON_PACKAGES = r"""\documentclass[letterpaper,11pt]{article}
\usepackage[empty]{fullpage}
\usepackage{titlesec}
\usepackage[usenames,dvipsnames]{xcolor}
\usepackage{enumitem}
\usepackage[hidelinks]{hyperref}
\usepackage{fancyhdr}
\pagestyle{fancy}
\fancyhf{}
\renewcommand{\headrulewidth}{0pt}
\renewcommand{\footrulewidth}{0pt}
\setlength{\parindent}{0in}
"""

TECH_MINIMALIST_PREAMBLE = (
    "% === TECH MINIMALIST CV ===\n"
    + _COMMON_PACKAGES
    + r"""\usepackage{helvet}
\renewcommand{\familydefault}{\sfdefault}
\definecolor{accent}{HTML}{3b82f6}
\addtolength{\oddsidemargin}{-0.25in}
\addtolength{\textwidth}{0.5in}
\titleformat{\section}{\Large\bfseries\color{accent}}{}{0em}{}[\vspace{2pt}]
\titlespacing*{\section}{0pt}{16pt}{8pt}
\setlist[itemize]{leftmargin=*, itemsep=5pt, parsep=0pt, topsep=4pt}
\hypersetup{colorlinks=true, linkcolor=accent, urlcolor=accent}

\begin{document}
"""
)

MODERN_CLEAN_PREAMBLE = (
    "% === MODERN CLEAN CV ===\n"
    + _COMMON_PACKAGES
    + r"""\usepackage{helvet}
\renewcommand{\familydefault}{\sfdefault}
\definecolor{accent}{HTML}{2563eb}
\definecolor{divider}{HTML}{d1d5db}
\addtolength{\oddsidemargin}{-0.5in}
\addtolength{\textwidth}{1in}
\titleformat{\section}{\large\bfseries\color{accent}}{}{0em}{}[{\color{divider}\titlerule}]
\titlespacing*{\section}{0pt}{12pt}{6pt}
\setlist[itemize]{leftmargin=*, itemsep=2pt, parsep=0pt, topsep=2pt}
\hypersetup{colorlinks=true, linkcolor=accent, urlcolor=accent}

\begin{document}
"""
)

CONTEMPORARY_PROFESSIONAL_PREAMBLE = (
    "% === CONTEMPORARY PROFESSIONAL CV ===\n"
    + _COMMON_PACKAGES
    + r"""\usepackage{lmodern}
\addtolength{\oddsidemargin}{-0.5in}
\addtolength{\textwidth}{1in}
\titleformat{\section}{\scshape\large}{}{0em}{}[\titlerule]
\titlespacing*{\section}{0pt}{10pt}{5pt}
\setlist[itemize]{leftmargin=0.2in, itemsep=1pt, parsep=0pt, topsep=2pt}
\hypersetup{colorlinks=false}

\begin{document}
"""
)


def _bullets(items: list[str]) -> str:
    if not items:
        return ""
    lines = "".join(f"    \\item {escape_latex(item)}\n" for item in items)
    return f"\\begin{{itemize}}\n{lines}\\end{{itemize}}\n\n"


def _date_range(start: str, end: str) -> str:
    start, end = escape_latex(start), escape_latex(end)
    if start and end:
        return f"{start} -- {end}"
    return start or end


def _contact_line(content: ExtractedCVContent, separator: str) -> str:
    contact = content.contact
    parts = []
    if contact.email:
        parts.append(f"\\href{{mailto:{contact.email}}}{{{escape_latex(contact.email)}}}")
    if contact.phone:
        parts.append(escape_latex(contact.phone))
    if contact.location:
        parts.append(escape_latex(contact.location))
    for label, url in (("LinkedIn", contact.linkedin), ("GitHub", contact.github), ("Website", contact.website)):
        if url:
            parts.append(f"\\href{{{url}}}{{{label}}}")
    return separator.join(parts)


def _sections(content: ExtractedCVContent, summary_title: str, skills_title: str) -> str:
    body = ""
    if content.summary:
        body += f"\\section{{{summary_title}}}\n{escape_latex(content.summary)}\n\n"

    if content.skills:
        body += f"\\section{{{skills_title}}}\n"
        for skill in content.skills:
            body += f"\\textbf{{{escape_latex(skill.category)}:}} {escape_latex(skill.items)}\n\n"

    if content.experience:
        body += "\\section{Experience}\n"
        for exp in content.experience:
            body += (
                f"\\textbf{{{escape_latex(exp.title)}}} \\hfill {_date_range(exp.start_date, exp.end_date)} \\\\\n"
                f"\\textit{{{escape_latex(exp.company)}}} \\hfill \\textit{{{escape_latex(exp.location)}}}\n\n"
            )
            body += _bullets(exp.bullets)

    if content.projects:
        body += "\\section{Projects}\n"
        for project in content.projects:
            body += f"\\textbf{{{escape_latex(project.name)}}}"
            if project.url:
                body += f" \\hfill \\href{{{project.url}}}{{Link}}"
            body += "\n\n" + _bullets(project.bullets)

    if content.education:
        body += "\\section{Education}\n"
        for edu in content.education:
            body += (
                f"\\textbf{{{escape_latex(edu.degree)}}} \\hfill {_date_range(edu.start_date, edu.end_date)} \\\\\n"
                f"\\textit{{{escape_latex(edu.institution)}}}\n\n"
            )

    if content.languages:
        body += "\\section{Languages}\n"
        body += " \\hspace{20pt} ".join(
            f"\\textbf{{{escape_latex(lang.language)}:}} {escape_latex(lang.level)}" for lang in content.languages
        )
        body += "\n\n"

    if content.certifications:
        body += "\\section{Certifications}\n" + _bullets(content.certifications)

    return body + "\\end{document}"


_BULLET_SEPARATOR = r" ~$\bullet$~ "
_BAR_SEPARATOR = r" \quad | \quad "
_DOT_SEPARATOR = r" $\cdot$ "


def _tech_minimalist_body(content: ExtractedCVContent) -> str:
    header = (
        "\\begin{center}\n"
        f"    {{\\LARGE\\bfseries {escape_latex(content.name)}}}\n\n"
        "    \\vspace{8pt}\n\n"
        f"    {{\\large {escape_latex(content.title)}}}\n\n"
        "    \\vspace{10pt}\n\n"
        f"    \\small {_contact_line(content, _BULLET_SEPARATOR)}\n"
        "\\end{center}\n\n"
    )
    return header + _sections(content, "About", "Technical Skills")


def _modern_clean_body(content: ExtractedCVContent) -> str:
    header = (
        f"{{\\Huge\\bfseries {escape_latex(content.name)}}} \\\\[4pt]\n"
        f"{{\\large\\color{{accent}} {escape_latex(content.title)}}} \\\\[6pt]\n"
        f"\\small {_contact_line(content, _BAR_SEPARATOR)}\n\n"
    )
    return header + _sections(content, "Summary", "Skills")


def _contemporary_professional_body(content: ExtractedCVContent) -> str:
    header = (
        "\\begin{center}\n"
        f"    {{\\Large\\scshape {escape_latex(content.name)}}} \\\\[2pt]\n"
        f"    {escape_latex(content.title)} \\\\[2pt]\n"
        f"    \\small {_contact_line(content, _DOT_SEPARATOR)}\n"
        "\\end{center}\n\n"
    )
    return header + _sections(content, "Professional Summary", "Core Competencies")


@dataclass(frozen=True)
class CVTemplate:
    id: str
    name: str
    description: str
    usage: str
    preamble: str
    render_body: Callable[[ExtractedCVContent], str]


CV_TEMPLATES: tuple[CVTemplate, ...] = (
    CVTemplate(
        id="tech-minimalist",
        name="Tech Minimalist",
        description="Maximum white space, Helvetica, subtle blue accents",
        usage="Startups, tech companies, remote roles",
        preamble=TECH_MINIMALIST_PREAMBLE,
        render_body=_tech_minimalist_body,
    ),
    CVTemplate(
        id="modern-clean",
        name="Modern Clean",
        description="Balanced spacing, thin dividers, professional polish",
        usage="Product companies, design-focused teams",
        preamble=MODERN_CLEAN_PREAMBLE,
        render_body=_modern_clean_body,
    ),
    CVTemplate(
        id="contemporary-professional",
        name="Contemporary Professional",
        description="Serif font, black only, traditional formal style",
        usage="Enterprise, banks, consultancies",
        preamble=CONTEMPORARY_PROFESSIONAL_PREAMBLE,
        render_body=_contemporary_professional_body,
    ),
)


def get_template(template_id: str) -> CVTemplate:
    for template in CV_TEMPLATES:
        if template.id == template_id:
            return template
    raise ValueError(f"Template not found: {template_id}")


def generate_latex_from_content(content: ExtractedCVContent, template_id: str) -> str:
    template = get_template(template_id)
    return template.preamble + template.render_body(content)
