import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.errors import InvalidLatexError  # noqa: E402
from app.ai.utils import clean_and_validate_latex, clean_json_response  # noqa: E402
from app.schemas.ai import ExtractedCVContent  # noqa: E402
from app.services.ai_service import regenerate_with_template  # noqa: E402
from app.services.cv_templates import CV_TEMPLATES, escape_latex, generate_latex_from_content, get_template  # noqa: E402

MINIMAL_DOC = "\\documentclass{article}\n\\begin{document}\nHi\n\\end{document}"


class CleanLatexTests(unittest.TestCase):
    def test_strips_fences_and_surrounding_chatter(self):
        raw = "```latex\nSure! Here it is:\n" + MINIMAL_DOC + "\nLet me know if you need more.\n```"
        self.assertEqual(clean_and_validate_latex(raw), MINIMAL_DOC)

    def test_missing_document_class(self):
        with self.assertRaises(InvalidLatexError) as ctx:
            clean_and_validate_latex("\\begin{document}\\end{document}")
        self.assertIn("missing \\documentclass", str(ctx.exception))

    def test_truncated_document(self):
        with self.assertRaises(InvalidLatexError) as ctx:
            clean_and_validate_latex("\\documentclass{article}\n\\begin{document}\nHi")
        self.assertIn("missing \\end{document}", str(ctx.exception))

    def test_clean_json_response(self):
        self.assertEqual(clean_json_response('```json\n{"a": 1}\n```'), '{"a": 1}')


class TemplateTests(unittest.TestCase):
    def setUp(self):
        self.content = ExtractedCVContent.model_validate(
            {
                "name": "Jane O'Neil",
                "title": "Data & ML Engineer",
                "contact": {"email": "jane@example.com", "phone": "+1 555", "github": "https://github.com/jane"},
                "summary": "Cut costs by 30% with C# and R_&_D.",
                "skills": [{"category": "Languages", "items": "Python, SQL"}],
                "experience": [
                    {
                        "title": "Engineer",
                        "company": "Acme",
                        "location": "Berlin",
                        "startDate": "2020",
                        "endDate": "Present",
                        "bullets": ["Shipped $1M feature"],
                    }
                ],
                "education": [{"degree": "BSc", "institution": "TU", "startDate": "2016", "endDate": "2019"}],
                "languages": [{"language": "German", "level": "C1"}],
            }
        )

    def test_escape_latex(self):
        self.assertEqual(escape_latex("50% & $5_#"), "50\\% \\& \\$5\\_\\#")
        self.assertEqual(escape_latex("a\\b"), "a\\textbackslash{}b")
        self.assertEqual(escape_latex(None), "")

    def test_every_template_renders_a_complete_document(self):
        for template in CV_TEMPLATES:
            with self.subTest(template=template.id):
                latex = generate_latex_from_content(self.content, template.id)
                self.assertTrue(latex.startswith("% ==="))
                self.assertIn("\\documentclass", latex)
                self.assertTrue(latex.endswith("\\end{document}"))
                self.assertEqual(clean_and_validate_latex(latex).count("\\end{document}"), 1)
                self.assertIn("Data \\& ML Engineer", latex)
                self.assertIn("30\\%", latex)
                self.assertIn("\\$1M", latex)
                self.assertIn("\\href{https://github.com/jane}{GitHub}", latex)
                self.assertNotIn("\\section{Projects}", latex)

    def test_unknown_template(self):
        with self.assertRaises(ValueError):
            get_template("fancy")
        with self.assertRaises(ValueError):
            regenerate_with_template(self.content, "fancy")

    def test_regenerate_matches_direct_render(self):
        self.assertEqual(
            regenerate_with_template(self.content, "modern-clean"),
            generate_latex_from_content(self.content, "modern-clean"),
        )


if __name__ == "__main__":
    unittest.main()
