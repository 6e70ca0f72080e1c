from __future__ import annotations

from typing import Any

CV_TEXT_MAX_CHARS = 15000


def analysis_prompt(job_description: str, user_cv: str) -> str:
    return (
        "You are a job application expert. Analyze this job description against the candidate's CV.\n\n"
        f"Job Description:\n{job_description}\n\n"
        f"Candidate CV:\n{user_cv}\n\n"
        "Provide a JSON response with:\n"
        "1. company: Company name (string)\n"
        "2. role: Job title (string)\n"
        "3. matchScore: 0-100 score (number)\n"
        "4. topRequirements: Top 5 requirements from the job (array of strings)\n"
        "5. skillsMatch: Skills the candidate has that match (array of strings)\n"
        "6. gaps: Skills the candidate lacks (array of strings)\n"
        "7. redFlags: Any concerns like timezone, visa, location issues (array of strings)\n"
        "8. keyPoints: 3-5 points to emphasize in cover letter (array of strings)\n\n"
        "Be honest about gaps but focus on strengths. Match score should be realistic.\n"
        "Return ONLY valid JSON, no other text."
    )


def cover_letter_prompt(analysis: Any, user_cv: str) -> str:
    key_points = "\n".join(f"{index}. {point}" for index, point in enumerate(analysis.key_points, start=1))
    return (
        "Write a professional cover letter (max 250 words) for this job application.\n\n"
        f"Company: {analysis.company}\n"
        f"Role: {analysis.role}\n\n"
        f"Key points to emphasize:\n{key_points}\n\n"
        f"Skills match:\n{', '.join(analysis.skills_match)}\n\n"
        f"Candidate CV:\n{user_cv}\n\n"
        "Requirements:\n"
        "- Direct, professional tone (no fluff)\n"
        "- Max 250 words\n"
        "- 3 paragraphs: Hook, fit, closing\n"
        "- Address timezone/remote fit if relevant\n"
        "- Be honest about any gaps\n"
        "- Show genuine interest in the company\n\n"
        'Return only the cover letter text, no subject line or "Dear Hiring Manager" (we\'ll add that).'
    )


CV_EXTRACTION_PROMPT = """You are a CV/Resume parser. Analyze this CV and extract the following information as a valid JSON object.

Required fields (use empty string "" if not found):
- name: Full name of the person
- email: Email address
- phone: Phone number (include country code if present)
- location: City, Country or full address
- summary: Professional summary or objective (2-3 sentences). If not explicitly stated, create one based on their experience.
- experience: Work history formatted as "Company | Role (Start - End)\\n- Achievement 1\\n- Achievement 2\\n\\n" for each job. Most recent first.
- skills: Comma-separated list of skills, technologies, and tools mentioned

Return ONLY the JSON object, no markdown code blocks, no explanation."""


def cv_text_prompt(cv_text: str) -> str:
    return f"{CV_EXTRACTION_PROMPT}\n\nCV Text:\n{cv_text[:CV_TEXT_MAX_CHARS]}"


STYLE_ANALYSIS_PROMPT = """You are an expert document style analyst. Analyze this CV/Resume and extract its visual styling as a JSON object.

Examine EVERY visual detail carefully:

{
  "margins": {"top": "<like '0.5in'>", "bottom": "<value>", "left": "<value>", "right": "<value>"},
  "typography": {"fontFamily": "serif|sans-serif|monospace", "bodyFontSize": "<like '10pt'>", "headerFontSize": "<like '24pt'>", "sectionFontSize": "<like '12pt'>"},
  "colors": {"primary": "<hex or name>", "secondary": "<hex or name>", "links": "<hex or name>", "text": "<hex or name>"},
  "sectionHeaders": {"style": "underlined|uppercase|bold|color-accent", "hasHorizontalRule": true|false, "ruleColor": "<color>", "alignment": "left|center"},
  "layout": {"columns": 1|2, "headerAlignment": "left|center", "dateAlignment": "right|inline", "bulletStyle": "disc|circle|dash|custom"},
  "spacing": {"lineHeight": "<like '1.15'>", "sectionSpacing": "<like '12pt'>", "paragraphSpacing": "<like '6pt'>"},
  "specialElements": {"hasContactSeparators": true|false, "separatorStyle": "bullet|pipe|dash", "hasBorders": true|false, "hasIcons": true|false}
}

Return ONLY the JSON object, no markdown code blocks, no explanation."""


def latex_from_style_prompt(style_json: str) -> str:
    return (
        "You are an expert LaTeX typesetter. Generate a COMPLETE, compilable LaTeX document that "
        "EXACTLY matches the following style specification:\n\n"
        f"## STYLE SPECIFICATION (from visual analysis):\n{style_json}\n\n"
        "## CRITICAL REQUIREMENTS:\n\n"
        "1. COLORS: use \\definecolor and \\textcolor for any colored elements\n"
        "2. FONTS: match the font family (\\renewcommand{\\familydefault}{\\sfdefault} for sans-serif)\n"
        "3. MARGINS: use the exact values in \\usepackage[...]{geometry}\n"
        "4. SECTION STYLING: reproduce the section header style with \\titleformat\n"
        "5. HYPERLINKS: \\hypersetup{colorlinks=true, urlcolor=<color>} when links are colored\n\n"
        "Now, looking at the CV content, generate the complete LaTeX document.\n\n"
        "## OUTPUT:\n"
        "- Start with \\documentclass\n"
        "- End with \\end{document}\n"
        "- Must compile without errors\n"
        "- NO markdown code blocks\n"
        "- NO explanations"
    )


LATEX_EXTRACTION_PROMPT = r"""You are an expert LaTeX typesetter. Your task is to EXACTLY REPLICATE this CV/Resume as a LaTeX document, preserving every visual detail.

## CRITICAL: EXACT VISUAL REPLICATION

You must preserve:
1. EXACT MARGINS - measure the margins precisely (top, bottom, left, right)
2. EXACT FONTS - match the font family (serif, sans-serif, etc.) and sizes
3. EXACT SPACING - line spacing, paragraph spacing, section spacing
4. EXACT LAYOUT - column structure, alignment, indentation
5. EXACT STYLING - bold, italic, underline patterns; line separators; bullet styles

## DOCUMENT STRUCTURE

Start with this template and CUSTOMIZE every value to match the original:

\documentclass[10pt]{article}
\usepackage[letterpaper, top=0.5in, bottom=0.5in, left=0.6in, right=0.6in]{geometry}
\usepackage[utf8]{inputenc}
\usepackage[T1]{fontenc}
\usepackage{enumitem}
\usepackage{titlesec}
\usepackage{hyperref}
\usepackage{xcolor}
\usepackage{tabularx}
\usepackage{ragged2e}
\usepackage{parskip}
\hypersetup{colorlinks=true, linkcolor=black, urlcolor=black}
\titleformat{\section}{\large\bfseries}{}{0em}{}[\titlerule]
\titlespacing{\section}{0pt}{12pt}{6pt}

## BULLET LISTS - use standard itemize with custom styling:

\begin{itemize}[nosep, leftmargin=*, labelsep=0.5em]
  \item Content here
\end{itemize}

## OUTPUT REQUIREMENTS

1. Output MUST start with: \documentclass
2. Output MUST end with: \end{document}
3. Must compile with pdflatex without errors
4. NO markdown code blocks
5. NO explanations - ONLY LaTeX code
6. Include the COMPLETE document - do NOT truncate

The goal is that when compiled, the PDF should look IDENTICAL to the original."""


def latex_modify_prompt(current_latex: str, instruction: str) -> str:
    return (
        "You are a LaTeX CV editor. Modify the following LaTeX CV based on the user's instruction.\n\n"
        f"Current LaTeX:\n{current_latex}\n\n"
        f"User's instruction:\n{instruction}\n\n"
        "Requirements:\n"
        "1. Make ONLY the changes requested by the user\n"
        "2. Preserve all other content and formatting\n"
        "3. Ensure the output compiles without errors\n"
        "4. Keep the same overall structure\n\n"
        "Return ONLY the modified LaTeX code, starting with \\documentclass and ending with \\end{document}.\n"
        "Do NOT include any markdown code blocks or explanations."
    )


def ats_analysis_prompt(latex_content: str) -> str:
    return (
        "You are an ATS (Applicant Tracking System) compliance expert. "
        "Analyze this LaTeX CV for ATS compatibility.\n\n"
        f"LaTeX CV:\n{latex_content}\n\n"
        "Analyze for:\n"
        "1. Parsing issues: complex layouts, tables, columns that ATS can't parse\n"
        "2. Missing sections: contact info, work experience, education, skills\n"
        "3. Formatting problems: unusual characters, images, graphics\n"
        "4. Content issues: missing dates, unclear job titles, keyword optimization\n"
        "5. Structure: clear section headers, consistent formatting\n\n"
        "Return a JSON object with this exact structure:\n"
        "{\n"
        '  "score": <0-100 integer>,\n'
        '  "issues": [\n'
        '    {"severity": "error" | "warning" | "info", "message": "Description of the issue", '
        '"suggestion": "How to fix it"}\n'
        "  ],\n"
        '  "summary": "Brief overall assessment"\n'
        "}\n\n"
        "Return ONLY the JSON object, no markdown code blocks."
    )


CV_CONTENT_EXTRACTION_PROMPT = """You are a CV/Resume content extractor. Your task is to extract ALL content from this CV into a structured JSON format.

## OUTPUT FORMAT
Return ONLY valid JSON matching this exact structure (no markdown, no explanations):

{
  "name": "Full Name",
  "title": "Job Title / Professional Title",
  "contact": {
    "email": "email@example.com",
    "phone": "+1 234 567 8900",
    "location": "City, Country",
    "linkedin": "https://linkedin.com/in/username",
    "github": "https://github.com/username",
    "website": "https://example.com"
  },
  "summary": "Professional summary or about section as a single paragraph...",
  "skills": [{"category": "Category Name", "items": "Skill 1, Skill 2, Skill 3"}],
  "experience": [
    {
      "title": "Job Title",
      "company": "Company Name",
      "location": "City, Country",
      "startDate": "Mon YYYY",
      "endDate": "Mon YYYY or Present",
      "bullets": ["Achievement or responsibility as written in CV"]
    }
  ],
  "education": [{"degree": "Degree Name", "institution": "School/University Name", "startDate": "YYYY", "endDate": "YYYY"}],
  "projects": [{"name": "Project Name", "url": "https://github.com/user/project", "bullets": ["Description"]}],
  "certifications": ["Certification Name - Provider (Year)"],
  "languages": [{"language": "English", "level": "Native/Professional/Basic"}]
}

## EXTRACTION RULES
1. Extract ALL text exactly as written (don't summarize or modify)
2. Keep bullet points as separate array items
3. If a section doesn't exist, use empty array [] or omit optional fields
4. Parse dates into "Mon YYYY" or "YYYY" format when possible
5. Include full URLs for linkedin/github/website if present
6. Group skills by their labeled categories (e.g., "Frontend", "Testing")

Return ONLY the JSON object. No markdown code blocks. No explanations."""
