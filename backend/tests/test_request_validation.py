"""Tests for chat request validation."""

from __future__ import annotations

import unittest

from app.services.errors import InvalidInput, Unauthenticated
from app.services.request_validation import validate_chat_request


class RequestValidationTests(unittest.TestCase):
    def test_returns_principal_and_trimmed_prompt(self) -> None:
        request = validate_chat_request("user_1", "  Hello there \n")

        self.assertEqual(request.principal_id, "user_1")
        self.assertEqual(request.prompt, "Hello there")

    def test_missing_principal_is_unauthenticated(self) -> None:
        for principal_id in (None, ""):
            with self.subTest(principal_id=principal_id):
                with self.assertRaises(Unauthenticated):
                    validate_chat_request(principal_id, "Hello")

    def test_authentication_is_checked_before_prompt(self) -> None:
        with self.assertRaises(Unauthenticated):
            validate_chat_request(None, "   ")

    def test_blank_or_non_text_prompts_are_invalid(self) -> None:
        for prompt in ("", "   ", "\t\n", None, 42, ["Hello"], {"text": "Hello"}):
            with self.subTest(prompt=prompt):
                with self.assertRaises(InvalidInput):
                    validate_chat_request("user_1", prompt)

    def test_prompt_content_is_otherwise_unrestricted(self) -> None:
        long_prompt = "x" * 20_000

        request = validate_chat_request("user_1", long_prompt)

        self.assertEqual(request.prompt, long_prompt)


if __name__ == "__main__":
    unittest.main()
