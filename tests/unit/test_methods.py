"""
Unit tests for HTTP method normalization.

Method tokens must match the closed verb vocabulary exactly, ignoring
case; substrings and near misses are rejected.
"""

import pytest
from hypothesis import assume, given, strategies as st

from errors.codes import ErrorCode
from errors.exceptions import InvalidMethod
from security.methods import HttpVerb, normalize_method

CONFIGURABLE_VERBS = [verb for verb in HttpVerb if verb is not HttpVerb.ALL]
VERB_NAMES = {verb.value for verb in CONFIGURABLE_VERBS}


@st.composite
def mixed_case(draw, verb: HttpVerb) -> str:
    flips = draw(st.lists(st.booleans(), min_size=len(verb.value), max_size=len(verb.value)))
    return "".join(c.upper() if flip else c for c, flip in zip(verb.value, flips))


class TestNormalizeMethod:
    """Tests for normalize_method."""

    @pytest.mark.parametrize("token", ["GET", "get", "GeT", "gET"])
    def test_case_variants_normalize_to_same_verb(self, token):
        """Test that tokens differing only by case give the same verb."""
        assert normalize_method(token) is HttpVerb.GET

    @pytest.mark.parametrize("verb", CONFIGURABLE_VERBS)
    def test_every_canonical_verb_is_accepted(self, verb):
        """Test that each canonical verb normalizes to itself."""
        assert normalize_method(verb.value.upper()) is verb

    def test_m_search_keeps_its_hyphen(self):
        """Test that the hyphenated M-SEARCH verb is recognized."""
        assert normalize_method("M-SEARCH") is HttpVerb.M_SEARCH

    @pytest.mark.parametrize("token", ["lol", "forget", "gett", "posts", "", " get", "get ", "g e t"])
    def test_unknown_tokens_raise_invalid_method(self, token):
        """Test that anything but an exact verb name is rejected."""
        with pytest.raises(InvalidMethod) as exc_info:
            normalize_method(token)

        assert exc_info.value.error_code == ErrorCode.INVALID_METHOD

    def test_all_is_not_a_configurable_method(self):
        """Test that the wildcard verb cannot be written in configuration."""
        with pytest.raises(InvalidMethod):
            normalize_method("all")

    @pytest.mark.parametrize("token", [None, 1, ["get"], b"get"])
    def test_non_string_tokens_raise_invalid_method(self, token):
        """Test that non-string tokens are rejected."""
        with pytest.raises(InvalidMethod):
            normalize_method(token)

    def test_error_message_names_the_token(self):
        """Test that the error message quotes the offending token."""
        with pytest.raises(InvalidMethod) as exc_info:
            normalize_method("lol")

        assert "lol" in str(exc_info.value)
        assert exc_info.value.details == {"method": "lol"}


class TestNormalizeMethodProperties:
    """Property-based tests for normalize_method."""

    @given(data=st.data(), verb=st.sampled_from(CONFIGURABLE_VERBS))
    def test_any_casing_of_a_verb_normalizes_to_it(self, data, verb):
        """Test that every casing of a canonical verb yields that verb."""
        token = data.draw(mixed_case(verb))
        assert normalize_method(token) is verb

    @given(token=st.text(max_size=20))
    def test_tokens_outside_the_vocabulary_are_rejected(self, token):
        """Test that any string not matching a verb raises InvalidMethod."""
        assume(token.lower() not in VERB_NAMES)
        with pytest.raises(InvalidMethod):
            normalize_method(token)
