import asyncio
import unittest

from lm_session.errors import PromptError
from lm_session.prompter import Prompter
from lm_session.sensitivity import (
    SensitivityAnalysis,
    SensitivityClassifier,
    band_for_level,
    build_sensitivity_prompt,
    parse_sensitivity_level,
)
from lm_session.session_manager import SessionManager
from tests.base import FakeCapability, FakeSession


def _classifier(reply: str, session_sink: list | None = None) -> SensitivityClassifier:
    async def responder(text: str) -> str:
        return reply

    session = FakeSession(responder)
    if session_sink is not None:
        session_sink.append(session)
    return SensitivityClassifier(Prompter(SessionManager(FakeCapability(lambda: session))))


class SensitivityClassifierTests(unittest.TestCase):
    def test_first_integer_becomes_level(self) -> None:
        classifier = _classifier("15 — this text is entirely benign.")

        analysis = asyncio.run(classifier.analyze("I love sunny days"))

        self.assertEqual(15, analysis.sensitivity_level)
        self.assertEqual("I love sunny days", analysis.text)
        self.assertEqual("15 — this text is entirely benign.", analysis.explanation)
        self.assertEqual("safe", analysis.band)

    def test_reply_without_digits_defaults_to_zero(self) -> None:
        classifier = _classifier("This looks harmless to me.")

        analysis = asyncio.run(classifier.analyze("hello"))

        self.assertEqual(0, analysis.sensitivity_level)
        self.assertEqual("This looks harmless to me.", analysis.explanation)

    def test_prompt_carries_bands_and_text(self) -> None:
        sessions: list[FakeSession] = []
        classifier = _classifier("Rating: 55", sessions)

        analysis = asyncio.run(classifier.analyze("some text"))

        prompt = sessions[0].prompts[0]
        self.assertEqual(prompt, build_sensitivity_prompt("some text"))
        self.assertIn('Text to analyze: "some text"', prompt)
        self.assertIn("81-100: Extreme sensitivity", prompt)
        self.assertEqual("moderate", analysis.band)

    def test_oversized_rating_in_reply_rates_maximum(self) -> None:
        classifier = _classifier("9" * 5000 + " is my rating")

        analysis = asyncio.run(classifier.analyze("x"))

        self.assertEqual(100, analysis.sensitivity_level)
        self.assertEqual("extreme", analysis.band)

    def test_prompt_error_propagates_unchanged(self) -> None:
        async def responder(text: str) -> str:
            raise TimeoutError("no answer")

        session = FakeSession(responder)
        classifier = SensitivityClassifier(Prompter(SessionManager(FakeCapability(lambda: session))))

        with self.assertRaises(PromptError):
            asyncio.run(classifier.analyze("hello"))

    def test_to_dict_includes_band(self) -> None:
        analysis = SensitivityAnalysis(text="t", sensitivity_level=70, explanation="why")

        self.assertEqual(
            {"text": "t", "sensitivity_level": 70, "explanation": "why", "band": "high"},
            analysis.to_dict(),
        )


class ParseSensitivityLevelTests(unittest.TestCase):
    def test_takes_first_integer(self) -> None:
        self.assertEqual(42, parse_sensitivity_level("I'd say 42, maybe 50 at most."))

    def test_clamps_to_upper_bound(self) -> None:
        self.assertEqual(100, parse_sensitivity_level("150 out of 100"))

    def test_very_long_number_clamps_without_raising(self) -> None:
        self.assertEqual(100, parse_sensitivity_level("9" * 5000 + " is my rating"))

    def test_leading_zeros_are_not_overflow(self) -> None:
        self.assertEqual(7, parse_sensitivity_level("0007 out of 100"))

    def test_empty_response(self) -> None:
        self.assertEqual(0, parse_sensitivity_level(""))

    def test_band_edges(self) -> None:
        self.assertEqual("safe", band_for_level(20))
        self.assertEqual("mild", band_for_level(21))
        self.assertEqual("extreme", band_for_level(100))
        with self.assertRaises(ValueError):
            band_for_level(101)


if __name__ == "__main__":
    unittest.main()
