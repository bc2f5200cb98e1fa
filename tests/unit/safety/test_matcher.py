"""Unit tests for the pattern matcher."""

from __future__ import annotations

import pytest

from auditguard.safety.matcher import is_allowed, looks_like_regex, lookup, matches


class TestMatches:
    """Tests for matches."""

    def test_exact_match_ignores_case(self) -> None:
        """Test case-insensitive equality."""
        assert matches("System:Admin", "system:admin")
        assert matches("system:admin", "SYSTEM:ADMIN")

    def test_regex_match(self) -> None:
        """Test that regex-looking patterns are searched as regexes."""
        assert matches("/api/v1/pods/web-1/exec", "/api/v1/pods/.*/exec")

    def test_regex_ignores_case(self) -> None:
        """Test that regex matching is case-insensitive."""
        assert matches("OPENSHIFT-monitoring", "openshift-.*")

    def test_substring_match(self) -> None:
        """Test case-insensitive containment."""
        assert matches("my-Cluster-Admin-sa", "cluster-admin")

    def test_no_match(self) -> None:
        """Test that unrelated values do not match."""
        assert not matches("viewer", "admin")
        assert not matches("/api/v1/pods/web/log", "/api/v1/pods/.*/exec")

    def test_invalid_regex_never_raises(self) -> None:
        """Test that a malformed regex falls back to substring matching."""
        assert not matches("abc", "[.*")
        assert matches("x[.*y", "[.*")

    @pytest.mark.parametrize(
        ("value", "pattern"),
        [
            ("System:Admin", "system:admin"),
            ("/api/v1/pods/web/exec", "/api/v1/pods/.*/exec"),
            ("my-cluster-admin-sa", "Cluster-Admin"),
            ("prod-east", "PROD.*"),
            ("viewer", "admin"),
        ],
    )
    def test_case_does_not_change_outcome(self, value: str, pattern: str) -> None:
        """Test that upper-casing the value and lower-casing the pattern is neutral."""
        assert matches(value.upper(), pattern.lower()) == matches(value, pattern)

    @pytest.mark.parametrize(
        ("pattern", "expected"),
        [
            ("prod.*", True),
            (r"\d+", True),
            ("cluster-admin", False),
            ("a.b", False),
        ],
    )
    def test_looks_like_regex(self, pattern: str, expected: bool) -> None:
        """Test which patterns are tried as regexes."""
        assert looks_like_regex(pattern) is expected


class TestAllowLists:
    """Tests for is_allowed and lookup."""

    def test_is_allowed_ignores_case(self) -> None:
        """Test case-insensitive allow-list membership."""
        assert is_allowed("GET", ("get", "list"))
        assert is_allowed("Kube-APIServer", ["kube-apiserver"])

    def test_is_allowed_is_exact(self) -> None:
        """Test that allow-lists never match on substrings."""
        assert not is_allowed("pod", ("pods",))
        assert not is_allowed("anything", ())

    def test_lookup_ignores_case(self) -> None:
        """Test case-insensitive table lookup."""
        assert lookup({"kube-apiserver": 15}, "KUBE-APISERVER", 10) == 15

    def test_lookup_default(self) -> None:
        """Test the fallback value for unknown keys."""
        assert lookup({"kube-apiserver": 15}, "custom-source", 10) == 10
