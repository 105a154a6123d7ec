"""Tests for TagGenerator and If-None-Match evaluation."""

from __future__ import annotations

from response_caching.conditional import ConditionalContext, Decision, evaluate
from response_caching.tags import TagGenerator


class TestTagGenerator:
    def test_same_payload_same_tag(self):
        gen = TagGenerator()
        assert gen.generate(b'{"hello":"world"}') == gen.generate(b'{"hello":"world"}')

    def test_str_and_bytes_agree(self):
        gen = TagGenerator()
        assert gen.generate("héllo") == gen.generate("héllo".encode())

    def test_different_payloads_differ(self):
        gen = TagGenerator()
        assert gen.generate(b"one") != gen.generate(b"two")

    def test_generated_tag_is_weak_and_quoted(self):
        tag = TagGenerator().generate(b"")
        assert tag.startswith('W/"')
        assert tag.endswith('"')
        assert len(tag) == len('W/""') + 32

    def test_salt_changes_tag(self):
        assert TagGenerator(b"a").generate(b"x") != TagGenerator(b"b").generate(b"x")

    def test_resolve_uses_explicit_value_verbatim(self):
        assert TagGenerator().resolve("123456", b"ignored") == "123456"

    def test_resolve_generates_for_missing_or_empty_value(self):
        gen = TagGenerator()
        expected = gen.generate(b"body")
        assert gen.resolve(None, b"body") == expected
        assert gen.resolve("", b"body") == expected


class TestEvaluate:
    def test_exact_match_is_fresh(self):
        assert evaluate("123456", "123456") is Decision.FRESH

    def test_missing_incoming_is_stale(self):
        assert evaluate(None, "123456") is Decision.STALE

    def test_mismatch_is_stale(self):
        assert evaluate("654321", "123456") is Decision.STALE

    def test_no_weak_or_list_parsing(self):
        assert evaluate('W/"abc"', '"abc"') is Decision.STALE
        assert evaluate('"a", "b"', '"a"') is Decision.STALE

    def test_missing_outgoing_is_stale(self):
        assert evaluate("123456", None) is Decision.STALE


class TestConditionalContext:
    def test_starts_unresolved(self):
        ctx = ConditionalContext(incoming_tag="abc")
        assert ctx.decision is Decision.UNRESOLVED
        assert not ctx.is_fresh

    def test_resolve_records_tag_and_decision(self):
        ctx = ConditionalContext(incoming_tag="abc")
        assert ctx.resolve("abc") is Decision.FRESH
        assert ctx.outgoing_tag == "abc"
        assert ctx.is_fresh

    def test_first_visit_resolves_stale(self):
        ctx = ConditionalContext()
        assert ctx.resolve("abc") is Decision.STALE
