"""Tests for explainer.py — intent classification of free-text questions."""

from __future__ import annotations

import unittest

from custom_components.astronexus.explainer import (
    DEFAULT_INTENT,
    RESPONSES,
    classify_intent,
    explain,
    normalize,
)


class TestNormalize(unittest.TestCase):

    def test_lowercase_and_plurals(self):
        self.assertEqual(normalize("Solar FLARES?"), frozenset({"solar", "flare"}))

    def test_es_plurals(self):
        self.assertIn("launch", normalize("upcoming launches"))

    def test_short_words_and_double_s_kept(self):
        words = normalize("Is the ISS across us")
        self.assertIn("iss", words)
        self.assertIn("across", words)
        self.assertIn("us", words)


class TestClassifyIntent(unittest.TestCase):

    def test_known_questions(self):
        cases = {
            "What are solar flares?": "solar_flares",
            "How fast does the ISS travel?": "iss_speed",
            "What is the Kp index?": "kp_index",
            "Explain geomagnetic storms": "geomagnetic_storm",
            "How do astronauts train?": "astronaut_training",
            "What does astronaut training involve?": "astronaut_training",
            "When are the next rocket launches?": "launches",
        }
        for question, intent in cases.items():
            with self.subTest(question=question):
                self.assertEqual(classify_intent(question), intent)

    def test_unrelated_question_falls_back_to_default(self):
        self.assertEqual(classify_intent("What's for dinner?"), DEFAULT_INTENT)

    def test_more_specific_group_wins(self):
        # "kp" alone matches kp_index with one word; "magnetic storm" matches with two
        self.assertEqual(classify_intent("Does a magnetic storm raise Kp?"), "geomagnetic_storm")

    def test_flare_substring_does_not_match(self):
        self.assertEqual(classify_intent("flareon is a pokemon"), DEFAULT_INTENT)


class TestExplain(unittest.TestCase):

    def test_answer_comes_from_lookup(self):
        explanation = explain("How fast is the ISS?")
        self.assertEqual(explanation.intent, "iss_speed")
        self.assertEqual(explanation.text, RESPONSES["iss_speed"])
        self.assertFalse(explanation.ai_configured)

    def test_api_key_flag_is_reported_only(self):
        explanation = explain("What are solar flares?", api_key_configured=True)
        self.assertTrue(explanation.ai_configured)
        self.assertEqual(explanation.text, RESPONSES["solar_flares"])

    def test_every_intent_has_a_response(self):
        from custom_components.astronexus.explainer import INTENT_KEYWORDS
        for intent in INTENT_KEYWORDS:
            self.assertIn(intent, RESPONSES)
        self.assertIn(DEFAULT_INTENT, RESPONSES)
