from __future__ import annotations

import unittest

from core.template import MISSING, TemplateError, extract_placeholders, lookup, render


class RenderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.data = {
            "name": "demo",
            "version": "1.2.0",
            "platform": "linux",
            "toolchain": {"arch": "x86_64", "triple": "{toolchain.arch}-unknown-{platform}"},
            "targets": ["amd64", "arm64"],
            "$root": "/opt",
            "release-channel": "stable",
            "debug": False,
        }

    def test_missing_placeholder_passes_through(self) -> None:
        self.assertEqual(render("{missing}", {}), "{missing}")

    def test_fixed_point_chaining(self) -> None:
        self.assertEqual(render("{a}", {"a": "{b}", "b": "x"}), "x")

    def test_nested_lookup(self) -> None:
        self.assertEqual(render("{name}-{toolchain.arch}", self.data), "demo-x86_64")

    def test_nested_values_are_rendered_again(self) -> None:
        self.assertEqual(render("{toolchain.triple}", self.data), "x86_64-unknown-linux")

    def test_sequence_index_lookup(self) -> None:
        self.assertEqual(render("{targets.1}", self.data), "arm64")
        self.assertEqual(render("{targets.5}", self.data), "{targets.5}")

    def test_dollar_and_dash_expressions(self) -> None:
        self.assertEqual(render("{$root}/{release-channel}", self.data), "/opt/stable")

    def test_partial_miss_leaves_only_that_placeholder(self) -> None:
        self.assertEqual(render("{name}/{toolchain.os}", self.data), "demo/{toolchain.os}")

    def test_lookup_through_scalar_is_a_miss(self) -> None:
        self.assertEqual(render("{name.length}", self.data), "{name.length}")

    def test_none_values_are_treated_as_missing(self) -> None:
        self.assertEqual(render("{value}", {"value": None}), "{value}")

    def test_booleans_render_lowercase(self) -> None:
        self.assertEqual(render("debug={debug}", self.data), "debug=false")

    def test_text_without_placeholders_is_unchanged(self) -> None:
        self.assertEqual(render("plain {not valid} text", self.data), "plain {not valid} text")

    def test_self_reference_hits_pass_cap(self) -> None:
        with self.assertRaises(TemplateError):
            render("{a}", {"a": "x{a}"}, max_passes=8)


class LookupTests(unittest.TestCase):
    def test_lookup_returns_missing_sentinel(self) -> None:
        self.assertIs(lookup("a.b", {"a": {}}), MISSING)
        self.assertEqual(lookup("a.b", {"a": {"b": 3}}), 3)

    def test_extract_placeholders(self) -> None:
        self.assertEqual(extract_placeholders("{name}/{platform}-{name}"), {"name", "platform"})


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
