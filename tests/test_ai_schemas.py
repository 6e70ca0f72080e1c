import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.errors import InvalidJSONError, SchemaValidationError  # noqa: E402
from app.schemas.ai import (  # noqa: E402
    clamp_score,
    parse_ats_analysis,
    parse_cv_data,
    parse_extracted_content,
    parse_job_analysis,
)


class JobAnalysisSchemaTests(unittest.TestCase):
    def test_minimal_payload_gets_defaults(self):
        result = parse_job_analysis('{"company":"Acme"}')

        self.assertEqual(result.company, "Acme")
        self.assertEqual(result.role, "Unknown Role")
        self.assertEqual(result.match_score, 0)
        self.assertEqual(result.top_requirements, [])
        self.assertEqual(result.skills_match, [])
        self.assertEqual(result.gaps, [])
        self.assertEqual(result.red_flags, [])
        self.assertEqual(result.key_points, [])

    def test_camel_case_fields_fences_and_clamping(self):
        raw = "```json\n" + json.dumps(
            {"company": "Acme", "role": "Engineer", "matchScore": 140, "skillsMatch": ["Python"], "gaps": None}
        ) + "\n```"

        result = parse_job_analysis(raw)

        self.assertEqual(result.match_score, 100)
        self.assertEqual(result.skills_match, ["Python"])
        self.assertEqual(result.gaps, [])
        self.assertEqual(result.model_dump(by_alias=True)["matchScore"], 100)

    def test_json_embedded_in_chatter_is_recovered(self):
        result = parse_job_analysis('Here is the analysis: {"company": "Globex", "matchScore": "72.6"} Thanks!')
        self.assertEqual(result.company, "Globex")
        self.assertEqual(result.match_score, 73)

    def test_invalid_json_is_distinct_from_schema_failure(self):
        with self.assertRaises(InvalidJSONError) as ctx:
            parse_job_analysis("not json at all")
        self.assertIn("invalid JSON response", str(ctx.exception))

    def test_non_object_payload_is_a_schema_failure(self):
        with self.assertRaises(SchemaValidationError):
            parse_job_analysis("[1, 2, 3]")


class CVContentSchemaTests(unittest.TestCase):
    def test_missing_name_is_reported_by_field(self):
        with self.assertRaises(SchemaValidationError) as ctx:
            parse_extracted_content('{"title": "Backend Engineer"}')

        paths = [path for path, _ in ctx.exception.issues]
        self.assertIn("name", paths)
        self.assertIn("name", str(ctx.exception))

    def test_blank_title_is_rejected(self):
        with self.assertRaises(SchemaValidationError) as ctx:
            parse_extracted_content('{"name": "Ada Lovelace", "title": "   "}')
        self.assertIn("title", [path for path, _ in ctx.exception.issues])

    def test_optional_sections_default(self):
        content = parse_extracted_content(
            json.dumps(
                {
                    "name": "Ada Lovelace",
                    "title": "Engineer",
                    "contact": {"email": "ada@example.com", "linkedin": None},
                    "experience": [{"title": "Analyst", "company": "Engines Ltd", "startDate": "1842"}],
                }
            )
        )

        self.assertEqual(content.contact.email, "ada@example.com")
        self.assertIsNone(content.contact.linkedin)
        self.assertEqual(content.experience[0].start_date, "1842")
        self.assertEqual(content.experience[0].bullets, [])
        self.assertIsNone(content.projects)
        self.assertEqual(content.skills, [])


class OtherSchemaTests(unittest.TestCase):
    def test_cv_data_defaults_to_empty_strings(self):
        data = parse_cv_data('{"name": "Ada", "email": null}')
        self.assertEqual(data.name, "Ada")
        self.assertEqual(data.email, "")
        self.assertEqual(data.skills, "")

    def test_ats_issue_severity_is_normalized(self):
        result = parse_ats_analysis(
            json.dumps(
                {
                    "score": -5,
                    "issues": [
                        {"severity": "ERROR", "message": "Uses tables"},
                        {"severity": "critical", "message": "Images in header"},
                    ],
                }
            )
        )

        self.assertEqual(result.score, 0)
        self.assertEqual([issue.severity for issue in result.issues], ["error", "info"])
        self.assertEqual(result.summary, "")

    def test_ats_issue_requires_message(self):
        with self.assertRaises(SchemaValidationError) as ctx:
            parse_ats_analysis('{"score": 80, "issues": [{"severity": "warning"}]}')
        self.assertIn("issues.0.message", [path for path, _ in ctx.exception.issues])

    def test_clamp_score(self):
        self.assertEqual(clamp_score(None), 0)
        self.assertEqual(clamp_score(True), 0)
        self.assertEqual(clamp_score("abc"), 0)
        self.assertEqual(clamp_score(float("nan")), 0)
        self.assertEqual(clamp_score(55.4), 55)
        self.assertEqual(clamp_score(1000), 100)


if __name__ == "__main__":
    unittest.main()
