"""Policy-document pipeline tests.

Covers percent decoding, pretty printing, JSON colorizing, and the combined
``render_policy_document`` entry point used when a document arrives.
"""

from __future__ import annotations

import json
import unittest
from urllib.parse import quote

from atui import document
from atui.ansi import strip_ansi
from atui.errors import DecodeError, FetchError, ParseError
from atui.palette import PLAIN_PALETTE, resolve_palette
from atui.config import ThemeColors

SAMPLE_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Action": ["s3:GetObject", "s3:ListBucket"],
            "Resource": "*",
            "Condition": {"Bool": {"aws:SecureTransport": "true"}},
        }
    ],
}


class DecodeDocumentTests(unittest.TestCase):
    def test_percent_escapes_are_decoded(self) -> None:
        self.assertEqual(document.decode_document("Hello%20World"), "Hello World")

    def test_plus_decodes_to_space(self) -> None:
        self.assertEqual(document.decode_document("a+b"), "a b")

    def test_empty_input_decodes_to_empty(self) -> None:
        self.assertEqual(document.decode_document(""), "")

    def test_invalid_escape_raises_decode_error(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            document.decode_document("test%ZZ")
        self.assertIn('invalid URL escape "%ZZ"', str(ctx.exception))
        self.assertIsInstance(ctx.exception, FetchError)

    def test_truncated_escape_raises_decode_error(self) -> None:
        with self.assertRaises(DecodeError):
            document.decode_document("abc%4")

    def test_decode_reverses_percent_encoding(self) -> None:
        samples = [
            '{"Version":"2012-10-17"}',
            "spaces and + plus & ampersand",
            "unicode: héllo 世界",
            "percent % sign",
        ]
        for text in samples:
            self.assertEqual(document.decode_document(quote(text, safe="")), text)


class PrettyPrintTests(unittest.TestCase):
    def test_two_space_indentation(self) -> None:
        pretty = document.pretty_print_document('{"Version":"2012-10-17"}')
        self.assertEqual(pretty, '{\n  "Version": "2012-10-17"\n}')

    def test_invalid_json_raises_parse_error(self) -> None:
        with self.assertRaises(ParseError):
            document.pretty_print_document("{invalid")


class ColorizeDocumentTests(unittest.TestCase):
    def test_keys_are_wrapped_in_key_color(self) -> None:
        colored = document.colorize_document('{\n  "Effect": "Allow"\n}')
        self.assertIn('\x1b[32m"Effect"\x1b[0m', colored)
        self.assertNotIn('\x1b[32m"Allow"', colored)

    def test_service_prefix_is_wrapped_in_service_color(self) -> None:
        colored = document.colorize_document('{\n  "Action": "s3:GetObject"\n}')
        self.assertIn('"\x1b[35ms3\x1b[0m:GetObject"', colored)

    def test_configured_colors_accept_wrapped_codes(self) -> None:
        palette = resolve_palette(ThemeColors(json_key="\x1b[36m", json_service_name="33"))
        colored = document.colorize_document('{"Action": "ec2:Describe*"}', palette)
        self.assertIn('\x1b[36m"Action"\x1b[0m', colored)
        self.assertIn('"\x1b[33mec2\x1b[0m:Describe*"', colored)

    def test_plain_palette_adds_no_escapes(self) -> None:
        text = document.pretty_print_document(json.dumps(SAMPLE_POLICY))
        self.assertEqual(document.colorize_document(text, PLAIN_PALETTE), text)

    def test_stripping_colors_gives_back_equivalent_json(self) -> None:
        pretty = document.pretty_print_document(json.dumps(SAMPLE_POLICY))
        colored = document.colorize_document(pretty)
        self.assertNotEqual(colored, pretty)
        self.assertEqual(strip_ansi(colored), pretty)
        self.assertEqual(json.loads(strip_ansi(colored)), SAMPLE_POLICY)


class RenderPolicyDocumentTests(unittest.TestCase):
    def test_version_document_round_trips_through_pipeline(self) -> None:
        raw = quote('{"Version":"2012-10-17"}', safe="")
        rendered = document.render_policy_document(raw)
        self.assertEqual(json.loads(strip_ansi(rendered)), {"Version": "2012-10-17"})

    def test_malformed_json_renders_inline_error(self) -> None:
        rendered = document.render_policy_document("{invalid")
        self.assertTrue(rendered.startswith("Error parsing JSON:"))

    def test_decode_error_propagates(self) -> None:
        with self.assertRaises(DecodeError):
            document.render_policy_document("%ZZ")


if __name__ == "__main__":
    unittest.main()
