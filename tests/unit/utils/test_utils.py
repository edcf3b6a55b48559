"""Tests for notionsync.utils: chunking, string splitting and redaction."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from notionsync.utils import REDACTION_MARKER, chunk_children, redact, sanitize_message, split_string


class TestChunkChildren:
    def test_exact_multiple(self):
        assert [len(c) for c in chunk_children(list(range(200)))] == [100, 100]

    def test_remainder(self):
        assert chunk_children([1, 2, 3, 4, 5], size=2) == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert chunk_children([]) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunk_children([1], size=0)

    @given(st.lists(st.integers(), max_size=300), st.integers(min_value=1, max_value=120))
    def test_concatenation_preserves_order(self, items, size):
        chunks = chunk_children(items, size)
        assert [x for chunk in chunks for x in chunk] == items
        assert all(1 <= len(chunk) <= size for chunk in chunks)


class TestSplitString:
    def test_short_string(self):
        assert split_string("abc") == ["abc"]

    def test_exact_limit(self):
        assert split_string("a" * 2000) == ["a" * 2000]

    def test_one_over_limit(self):
        assert [len(p) for p in split_string("a" * 2001)] == [2000, 1]

    def test_multibyte_characters_are_not_cut(self):
        parts = split_string("\U0001F600" * 5, 2)
        assert parts == ["\U0001F600" * 2, "\U0001F600" * 2, "\U0001F600"]

    def test_empty(self):
        assert split_string("") == []

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            split_string("x", 0)


class TestSanitizeMessage:
    def test_token_replaced(self):
        assert sanitize_message("bad token secret_abc", "secret_abc") == f"bad token {REDACTION_MARKER}"

    def test_bearer_replaced_without_token(self):
        assert sanitize_message("Authorization: Bearer ntn_999") == f"Authorization: Bearer {REDACTION_MARKER}"

    def test_non_string_input(self):
        assert sanitize_message(404) == "404"

    def test_clean_text_unchanged(self):
        assert sanitize_message("nothing here", "secret_abc") == "nothing here"


class TestRedact:
    def test_sensitive_keys(self):
        out = redact({"api_key": "k", "Authorization": "Bearer t", "name": "ok"})
        assert out == {"api_key": REDACTION_MARKER, "Authorization": f"Bearer {REDACTION_MARKER}", "name": "ok"}

    def test_token_in_nested_values(self):
        out = redact({"children": [{"text": "has secret_abc inside"}]}, "secret_abc")
        assert out["children"][0]["text"] == f"has {REDACTION_MARKER} inside"

    def test_binary_values(self):
        assert redact({"data": b"\x00\x01"}) == {"data": "<binary:2_bytes>"}

    def test_original_not_mutated(self):
        original = {"token": "t", "nested": {"password": "p"}}
        redact(original)
        assert original == {"token": "t", "nested": {"password": "p"}}
