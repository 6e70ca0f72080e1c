import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("AI_RUNS_LOG_ENABLED", "0")

from app.ai.catalog import MODEL_CATALOG, get_model_name  # noqa: E402
from app.ai.credentials import (  # noqa: E402
    get_available_models,
    get_key_status,
    is_model_available,
    mask_key,
    probe_api_key,
    resolve_key,
    validate_key_format,
)
from app.ai.types import CredentialOptions, StaticKeyStore  # noqa: E402

NO_ENV_KEYS = {"GEMINI_API_KEY": "", "OPENROUTER_API_KEY": "", "OPENAI_API_KEY": ""}


class ResolveKeyTests(unittest.TestCase):
    def test_priority_explicit_then_user_then_environment(self):
        user_keys = StaticKeyStore({"gemini": "AIza-user"})
        with patch.dict(os.environ, {**NO_ENV_KEYS, "GEMINI_API_KEY": "AIza-env"}):
            self.assertEqual(resolve_key("gemini"), "AIza-env")
            self.assertEqual(resolve_key("gemini", CredentialOptions(user_keys=user_keys)), "AIza-user")
            self.assertEqual(
                resolve_key(
                    "gemini",
                    CredentialOptions(explicit_keys={"gemini": "AIza-explicit"}, user_keys=user_keys),
                ),
                "AIza-explicit",
            )

    def test_empty_and_placeholder_values_count_as_missing(self):
        with patch.dict(os.environ, {**NO_ENV_KEYS, "OPENAI_API_KEY": "your_openai_key"}):
            self.assertIsNone(resolve_key("openai"))
            self.assertIsNone(resolve_key("openai", CredentialOptions(explicit_keys={"openai": "   "})))
            self.assertIsNone(resolve_key("unknown-provider"))

    def test_model_availability_follows_provider_key(self):
        options = CredentialOptions.with_keys(openrouter="sk-or-v1-abc")
        with patch.dict(os.environ, NO_ENV_KEYS):
            self.assertTrue(is_model_available("gemma-3-27b", options))
            self.assertFalse(is_model_available("gemini-2.5-flash", options))
            self.assertFalse(is_model_available("not-a-model", options))

    def test_available_models_annotates_the_whole_catalog_in_order(self):
        with patch.dict(os.environ, NO_ENV_KEYS):
            models = get_available_models(CredentialOptions.with_keys(gemini="AIza-test"))

        self.assertEqual([model["id"] for model in models], [info.id for info in MODEL_CATALOG])
        availability = {model["id"]: model["available"] for model in models}
        self.assertTrue(availability["gemini-2.5-pro"])
        self.assertFalse(availability["nova-2-lite"])
        self.assertFalse(availability["gpt-4o"])


class KeyManagementTests(unittest.TestCase):
    def test_validate_key_format(self):
        self.assertTrue(validate_key_format("gemini", "AIza" + "a" * 35))
        self.assertFalse(validate_key_format("gemini", "AIza-short"))
        self.assertTrue(validate_key_format("openrouter", "sk-or-v1-" + "0f" * 32))
        self.assertFalse(validate_key_format("openrouter", "sk-or-v1-XYZ"))
        self.assertTrue(validate_key_format("openai", "sk-proj-abcdefghijklmnopqrstuvwxyz"))
        self.assertFalse(validate_key_format("anthropic", "sk-ant-abc"))

    def test_mask_key(self):
        self.assertEqual(mask_key("short"), "****")
        self.assertEqual(mask_key("AIzaSyABCDEFGHIJKL"), "AIza...IJKL")

    def test_key_status_reports_env_var_names(self):
        with patch.dict(os.environ, NO_ENV_KEYS):
            status = get_key_status(CredentialOptions.with_keys(gemini="AIza" + "b" * 35))

        self.assertEqual(
            status["gemini"],
            {"configured": True, "valid_format": True, "masked_key": "AIza...bbbb", "env_var": "GEMINI_API_KEY"},
        )
        self.assertFalse(status["openrouter"]["configured"])
        self.assertIsNone(status["openrouter"]["masked_key"])
        self.assertEqual(status["openai"]["env_var"], "OPENAI_API_KEY")


class ProbeApiKeyTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_key_is_reported_without_network(self):
        self.assertEqual(await probe_api_key("gemini", None), {"valid": False, "error": "No key provided"})

    async def test_unknown_provider(self):
        self.assertEqual(await probe_api_key("claude", "key"), {"valid": False, "error": "Unknown provider"})


class ModelNameTests(unittest.TestCase):
    def test_direct_model_names(self):
        self.assertEqual(get_model_name("gemini-2.5-flash"), "gemini-2.5-flash")
        self.assertEqual(get_model_name("gpt-4o"), "gpt-4o")


if __name__ == "__main__":
    unittest.main()
