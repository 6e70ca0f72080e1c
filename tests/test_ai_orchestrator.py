import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("AI_RUNS_LOG_ENABLED", "0")

from app.ai.errors import (  # noqa: E402
    InvalidLatexError,
    ModelsExhaustedError,
    NoModelsAvailableError,
    RateLimitedError,
    SafetyBlockedError,
    TransportError,
    UnsupportedModelError,
)
from app.ai.orchestrator import Orchestrator  # noqa: E402
from app.ai.types import CredentialOptions, Generation  # noqa: E402

NO_ENV_KEYS = {"GEMINI_API_KEY": "", "OPENROUTER_API_KEY": "", "OPENAI_API_KEY": ""}


class FakeClient:
    def __init__(self, model_id, outcome):
        self.model_id = model_id
        self._outcome = outcome

    async def generate(self, prompt, *, document=None, max_output_tokens=16384):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return Generation(text=self._outcome, finish_reason="STOP")

    async def extract_latex(self, document):
        return (await self.generate("latex", document=document)).text


class FakeFactory:
    """Returns scripted outcomes per model id and records every client built."""

    def __init__(self, outcomes, default="ok"):
        self.outcomes = outcomes
        self.default = default
        self.calls = []
        self.keys = []

    def __call__(self, model_id, api_key):
        self.calls.append(model_id)
        self.keys.append(api_key)
        return FakeClient(model_id, self.outcomes.get(model_id, self.default))


async def _generate(client):
    return (await client.generate("prompt")).text


def _identity(raw):
    return raw


class OrchestratorTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.env = patch.dict(os.environ, NO_ENV_KEYS)
        self.env.start()
        self.addCleanup(self.env.stop)

    async def test_requested_model_succeeds_without_fallback(self):
        factory = FakeFactory({"gemini-2.5-flash": "done"})
        orchestrator = Orchestrator(client_factory=factory)

        outcome = await orchestrator.run(
            "analyze_job",
            _generate,
            _identity,
            model="gemini-2.5-flash",
            credentials=CredentialOptions.with_keys(gemini="AIza-explicit"),
        )

        self.assertEqual(outcome.result, "done")
        self.assertEqual(outcome.model_used, "gemini-2.5-flash")
        self.assertFalse(outcome.fallback_used)
        self.assertEqual(outcome.tried_models, ("gemini-2.5-flash",))
        self.assertEqual(factory.keys, ["AIza-explicit"])

    async def test_unavailable_requested_model_is_substituted_before_any_call(self):
        factory = FakeFactory({})
        orchestrator = Orchestrator(client_factory=factory)

        outcome = await orchestrator.run(
            "analyze_job",
            _generate,
            _identity,
            model="gemini-2.5-flash",
            credentials=CredentialOptions.with_keys(openrouter="sk-or-v1-test"),
        )

        self.assertEqual(factory.calls, ["gemini-2.0-flash-or"])
        self.assertEqual(outcome.model_used, "gemini-2.0-flash-or")
        self.assertTrue(outcome.fallback_used)

    async def test_single_keyed_substitute_is_the_only_adapter_called(self):
        catalog_ids = ("gemini-2.5-flash", "gemma-3-27b")
        from app.ai.catalog import MODEL_CATALOG

        catalog = [info for info in MODEL_CATALOG if info.id in catalog_ids]
        factory = FakeFactory({"gemma-3-27b": "from gemma"})
        orchestrator = Orchestrator(client_factory=factory, catalog=catalog)

        outcome = await orchestrator.run(
            "extract_with_template",
            _generate,
            _identity,
            model="gemini-2.5-flash",
            credentials=CredentialOptions.with_keys(openrouter="sk-or-v1-test"),
        )

        self.assertEqual(factory.calls, ["gemma-3-27b"])
        self.assertEqual(outcome.model_used, "gemma-3-27b")
        self.assertTrue(outcome.fallback_used)

    async def test_no_credentials_fails_with_zero_adapter_calls(self):
        factory = FakeFactory({})
        orchestrator = Orchestrator(client_factory=factory)

        with self.assertRaises(NoModelsAvailableError) as ctx:
            await orchestrator.run("analyze_job", _generate, _identity, model="gpt-4o")

        self.assertEqual(factory.calls, [])
        self.assertIn("No AI models available", str(ctx.exception))

    async def test_untyped_rate_limit_error_fails_over_in_catalog_order(self):
        from app.ai.catalog import MODEL_CATALOG

        catalog = [info for info in MODEL_CATALOG if info.id in {"gemini-2.5-flash", "gemma-3-27b", "gpt-4o"}]
        factory = FakeFactory({"gemini-2.5-flash": RuntimeError("429 rate limit exceeded"), "gemma-3-27b": "ok"})
        orchestrator = Orchestrator(client_factory=factory, catalog=catalog)

        outcome = await orchestrator.run(
            "analyze_job",
            _generate,
            _identity,
            model="gemini-2.5-flash",
            credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
        )

        self.assertTrue(outcome.fallback_used)
        self.assertEqual(outcome.tried_models, ("gemini-2.5-flash", "gemma-3-27b"))
        self.assertEqual(factory.calls, ["gemini-2.5-flash", "gemma-3-27b"])

    async def test_content_error_propagates_without_fallback(self):
        error = RuntimeError("content blocked by safety filter")
        factory = FakeFactory({"gemini-2.5-flash": error})
        orchestrator = Orchestrator(client_factory=factory)

        with self.assertRaises(RuntimeError) as ctx:
            await orchestrator.run(
                "extract_latex",
                _generate,
                _identity,
                model="gemini-2.5-flash",
                credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
            )

        self.assertIs(ctx.exception, error)
        self.assertEqual(factory.calls, ["gemini-2.5-flash"])

    async def test_typed_safety_block_is_terminal_even_with_rate_limit_vocabulary(self):
        error = SafetyBlockedError("Content blocked by safety filter (quota exceeded notice)")
        factory = FakeFactory({"gemini-2.5-flash": error})
        orchestrator = Orchestrator(client_factory=factory)

        with self.assertRaises(SafetyBlockedError):
            await orchestrator.run(
                "extract_latex",
                _generate,
                _identity,
                credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
            )

        self.assertEqual(factory.calls, ["gemini-2.5-flash"])

    async def test_every_model_is_tried_at_most_once_before_exhaustion(self):
        factory = FakeFactory({}, default=RateLimitedError("429"))
        orchestrator = Orchestrator(client_factory=factory)

        with self.assertRaises(ModelsExhaustedError) as ctx:
            await orchestrator.run(
                "extract_latex",
                _generate,
                _identity,
                model="gemini-2.5-pro",
                credentials=CredentialOptions.with_keys(gemini="AIza-test"),
            )

        self.assertEqual(factory.calls, ["gemini-2.5-pro", "gemini-2.5-flash", "gemini-3-pro-preview"])
        self.assertEqual(len(set(factory.calls)), len(factory.calls))
        self.assertEqual(ctx.exception.tried_models, factory.calls)
        self.assertEqual(
            str(ctx.exception),
            "All available AI models are unavailable or rate limited. "
            "Tried: gemini-2.5-pro, gemini-2.5-flash, gemini-3-pro-preview. "
            "Please wait a moment and try again.",
        )
        self.assertIsInstance(ctx.exception.__cause__, RateLimitedError)

    async def test_transient_transport_error_fails_over_when_enabled(self):
        factory = FakeFactory({"gemini-2.5-flash": TransportError("Gemini API error: 503", status_code=503)})
        orchestrator = Orchestrator(client_factory=factory, failover_on_transport=True)

        outcome = await orchestrator.run(
            "analyze_job",
            _generate,
            _identity,
            credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
        )

        self.assertEqual(outcome.model_used, "gemini-2.0-flash-or")

    async def test_transport_exhaustion_message_does_not_claim_rate_limits_only(self):
        factory = FakeFactory({}, default=TransportError("Gemini API error: 503", status_code=503))
        orchestrator = Orchestrator(client_factory=factory, failover_on_transport=True)

        with self.assertRaises(ModelsExhaustedError) as ctx:
            await orchestrator.run(
                "analyze_job",
                _generate,
                _identity,
                credentials=CredentialOptions.with_keys(gemini="AIza-test"),
            )

        self.assertIn("unavailable or rate limited", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, TransportError)

    async def test_transport_error_is_terminal_when_failover_disabled(self):
        factory = FakeFactory({"gemini-2.5-flash": TransportError("timed out")})
        orchestrator = Orchestrator(client_factory=factory, failover_on_transport=False)

        with self.assertRaises(TransportError):
            await orchestrator.run(
                "analyze_job",
                _generate,
                _identity,
                credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
            )
        self.assertEqual(factory.calls, ["gemini-2.5-flash"])

    async def test_client_error_status_is_terminal(self):
        factory = FakeFactory({"gemini-2.5-flash": TransportError("bad request", status_code=400)})
        orchestrator = Orchestrator(client_factory=factory, failover_on_transport=True)

        with self.assertRaises(TransportError):
            await orchestrator.run(
                "analyze_job",
                _generate,
                _identity,
                credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
            )
        self.assertEqual(factory.calls, ["gemini-2.5-flash"])

    async def test_validation_failure_after_success_is_not_retried(self):
        from app.ai.utils import clean_and_validate_latex

        factory = FakeFactory({"gemini-2.5-flash": "no latex here"})
        orchestrator = Orchestrator(client_factory=factory)

        with self.assertRaises(InvalidLatexError):
            await orchestrator.run(
                "extract_latex",
                _generate,
                clean_and_validate_latex,
                credentials=CredentialOptions.with_keys(gemini="AIza-test", openrouter="sk-or-v1-test"),
            )
        self.assertEqual(factory.calls, ["gemini-2.5-flash"])

    async def test_unknown_model_id_is_rejected(self):
        factory = FakeFactory({})
        orchestrator = Orchestrator(client_factory=factory)

        with self.assertRaises(UnsupportedModelError):
            await orchestrator.run(
                "analyze_job",
                _generate,
                _identity,
                model="claude-sonnet",
                credentials=CredentialOptions.with_keys(gemini="AIza-test"),
            )
        self.assertEqual(factory.calls, [])

    async def test_environment_key_is_used_when_no_override(self):
        factory = FakeFactory({})
        orchestrator = Orchestrator(client_factory=factory)

        with patch.dict(os.environ, {"OPENAI_API_KEY": "sk-env-key"}):
            outcome = await orchestrator.run("analyze_job", _generate, _identity, model="gpt-4o")

        self.assertEqual(outcome.model_used, "gpt-4o")
        self.assertEqual(factory.keys, ["sk-env-key"])


if __name__ == "__main__":
    unittest.main()
