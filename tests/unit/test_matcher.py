"""
Unit tests for the path matcher.
"""

import pytest

from grocerme.http.matcher import match, split_segments, template_params


class TestMatch:
    """Tests for match(template, path)."""

    def test_literal_match(self):
        """Identical literal paths match with no params."""
        assert match("/health", "/health") == ({}, True)

    def test_single_param(self):
        """A :name segment binds the path segment."""
        assert match("/lists/:id", "/lists/42") == ({"id": "42"}, True)

    def test_multiple_params(self):
        """Every declared parameter is bound, and only those."""
        params, ok = match("/lists/:list_id/items/:item_id", "/lists/7/items/99")
        assert ok is True
        assert params == {"list_id": "7", "item_id": "99"}
        assert match("/users/:id/posts/:postId", "/users/7/posts/9") == ({"id": "7", "postId": "9"}, True)

    def test_literal_mismatch(self):
        """A differing literal segment fails the match."""
        assert match("/lists/:id", "/items/42") == ({}, False)

    def test_segment_count_mismatch_shorter(self):
        """Fewer path segments never match."""
        assert match("/lists/:id", "/lists") == ({}, False)

    def test_segment_count_mismatch_longer(self):
        """Extra path segments never match (no wildcards)."""
        assert match("/lists/:id", "/lists/42/items") == ({}, False)

    def test_root_matches_root(self):
        """'/' only matches '/'."""
        assert match("/", "/") == ({}, True)
        assert match("/", "/lists") == ({}, False)
        assert match("/lists", "/") == ({}, False)

    def test_trailing_slash_ignored(self):
        """Surrounding slashes are trimmed on both sides."""
        assert match("/test/", "/test") == ({}, True)
        assert match("/test", "/test/") == ({}, True)
        assert match("/test/", "/test/") == ({}, True)
        assert match("/lists/:id", "/lists/42/") == ({"id": "42"}, True)
        assert match("/lists/", "/lists") == ({}, True)

    def test_param_binds_raw_segment(self):
        """No decoding or type checks: the segment is bound as-is."""
        params, ok = match("/lists/:id", "/lists/not-a-number%20x")
        assert ok is True
        assert params == {"id": "not-a-number%20x"}

    def test_failed_match_returns_empty_params(self):
        """A literal mismatch after a bound param still yields an empty dict."""
        params, ok = match("/lists/:id/items", "/lists/42/other")
        assert ok is False
        assert params == {}

    def test_is_pure(self):
        """Repeated calls give the same answer and share no state."""
        first, _ = match("/lists/:id", "/lists/1")
        second, _ = match("/lists/:id", "/lists/2")
        assert first == {"id": "1"}
        assert second == {"id": "2"}

    def test_param_names_are_exactly_template_names(self):
        """A successful match yields exactly the template's parameter set."""
        template = "/a/:x/b/:y/:z"
        params, ok = match(template, "/a/1/b/2/3")
        assert ok is True
        assert set(params) == set(template_params(template))


class TestSplitSegments:
    """Tests for split_segments()."""

    def test_split(self):
        """Slashes are trimmed, then the path is split."""
        assert split_segments("/lists/42/") == ["lists", "42"]

    def test_root(self):
        """Root is a single empty segment."""
        assert split_segments("/") == [""]


class TestTemplateParams:
    """Tests for template validation."""

    def test_names_in_order(self):
        """Declared names come back in template order."""
        assert template_params("/lists/:id/items/:item_id") == ["id", "item_id"]

    def test_no_params(self):
        """Literal-only templates declare nothing."""
        assert template_params("/health") == []

    def test_empty_name_rejected(self):
        """A bare ':' segment is an error."""
        with pytest.raises(ValueError, match="Empty parameter name"):
            template_params("/lists/:")

    def test_duplicate_name_rejected(self):
        """The same name twice is an error."""
        with pytest.raises(ValueError, match="Duplicate parameter"):
            template_params("/a/:id/b/:id")

    def test_must_start_with_slash(self):
        """Relative templates are rejected."""
        with pytest.raises(ValueError):
            template_params("lists/:id")
