"""Property-based tests for idea ID normalization."""

import re

from hypothesis import given, strategies as st

from ideaflow.idea import normalize_id

_NORMALIZED = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*)?$")


@given(text=st.text(max_size=80))
def test_normalized_ids_have_canonical_shape(text: str) -> None:
    """Property: normalized IDs are lowercase alphanumeric runs joined by hyphens."""
    assert _NORMALIZED.match(normalize_id(text))


@given(text=st.text(max_size=80))
def test_normalize_id_is_idempotent(text: str) -> None:
    """Property: normalizing an ID again changes nothing."""
    once = normalize_id(text)

    assert normalize_id(once) == once


@given(text=st.text(max_size=80))
def test_case_and_punctuation_do_not_matter(text: str) -> None:
    """Property: titles differing only in ASCII case map to the same ID."""
    ascii_text = text.encode("ascii", "ignore").decode()

    assert normalize_id(ascii_text.upper()) == normalize_id(ascii_text.lower())
