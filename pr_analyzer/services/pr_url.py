"""
Pull Request URL Parser

Extracts repository coordinates from a GitHub pull request URL.
Trailing slashes, query strings, fragments and sub-pages such as
/files are tolerated; anything else that does not carry the
owner/repo/pull/number shape is rejected.
"""

import re
from typing import Any, Optional

from pr_analyzer.models import PRReference

# github.com/OWNER/REPO/pull/NUMBER
PR_URL_PATTERN = re.compile(
    r"github\.com/([a-zA-Z0-9_-]+)/([a-zA-Z0-9_.-]+)/pull/(\d+)"
)

PR_URL_FORMAT_HINT = "https://github.com/owner/repo/pull/123"


def parse_pr_url(url: Any) -> Optional[PRReference]:
    """
    Parse a pull request URL into a PRReference.

    Args:
        url: Raw user input, possibly padded with whitespace

    Returns:
        PRReference on match, None for anything that does not match
    """
    if not isinstance(url, str):
        return None

    match = PR_URL_PATTERN.search(url.strip())
    if not match:
        return None

    owner, repo, number = match.groups()
    pull_number = int(number)
    if pull_number < 1:
        return None

    return PRReference(owner=owner, repo=repo, pull_number=pull_number)
