"""
Tests for PR URL Parser

Tests extraction of owner, repo and pull number from GitHub URLs.
"""

import pytest

from pr_analyzer.models import PRReference
from pr_analyzer.services.pr_url import parse_pr_url


class TestParsePRUrl:
    """Test suite for parse_pr_url."""

    @pytest.mark.parametrize(
        "url, owner, repo, number",
        [
            ("https://github.com/octocat/hello-world/pull/42", "octocat", "hello-world", 42),
            ("https://github.com/my_org/repo.js/pull/1", "my_org", "repo.js", 1),
            ("http://github.com/a-b/c_d.e-f/pull/9999", "a-b", "c_d.e-f", 9999),
            ("github.com/owner/repo/pull/7", "owner", "repo", 7),
        ],
    )
    def test_valid_urls(self, url, owner, repo, number):
        """Test that well-formed URLs are parsed."""
        ref = parse_pr_url(url)

        assert ref == PRReference(owner=owner, repo=repo, pull_number=number)

    def test_surrounding_whitespace(self):
        """Test that input is trimmed before matching."""
        ref = parse_pr_url("   https://github.com/owner/repo/pull/5 \n")

        assert ref is not None
        assert ref.pull_number == 5

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/owner/repo/pull/5/",
            "https://github.com/owner/repo/pull/5?diff=split",
            "https://github.com/owner/repo/pull/5#discussion_r1",
            "https://github.com/owner/repo/pull/5/files",
        ],
    )
    def test_trailing_parts_are_ignored(self, url):
        """Test trailing slashes, query params, fragments and sub-pages."""
        ref = parse_pr_url(url)

        assert ref == PRReference(owner="owner", repo="repo", pull_number=5)

    @pytest.mark.parametrize(
        "url",
        [
            "not a url",
            "",
            "   ",
            "https://github.com/owner/repo",
            "https://github.com/owner/repo/pulls/5",
            "https://github.com/owner/repo/issues/5",
            "https://github.com/owner/repo/pull/abc",
            "https://github.com/owner/pull/5",
            "https://gitlab.com/owner/repo/pull/5",
            "https://github.com/owner/repo/pull/0",
        ],
    )
    def test_invalid_urls(self, url):
        """Test that non-conforming strings return None."""
        assert parse_pr_url(url) is None

    @pytest.mark.parametrize("value", [None, 42, ["https://github.com/o/r/pull/1"]])
    def test_non_string_input(self, value):
        """Test that non-string input returns None instead of raising."""
        assert parse_pr_url(value) is None

    def test_reference_is_immutable(self):
        """Test that a parsed reference cannot be modified."""
        ref = parse_pr_url("https://github.com/owner/repo/pull/3")

        with pytest.raises(Exception):
            ref.owner = "someone-else"

    def test_full_name(self):
        """Test the owner/repo helper."""
        ref = parse_pr_url("https://github.com/owner/repo/pull/3")

        assert ref.full_name == "owner/repo"
