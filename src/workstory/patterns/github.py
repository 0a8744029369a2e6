"""GitHub pull request / issue patterns.

All forms normalize to ``owner/repo#N`` so a PR URL in a Jira comment
joins a shorthand mention in a Slack thread. A bare ``#N`` has no
repository context and becomes ``local#N`` (medium tier).
"""

from workstory.constants import ConfidenceTier, ToolType
from workstory.patterns.base import (
    LocalReferencePattern,
    PatternExample,
    RepoReferencePattern,
)

github_pr_url = RepoReferencePattern(
    id="github-pr-url-v1",
    name="GitHub PR/Issue URL",
    family="github-pr-url",
    version=1,
    description="Pull request and issue numbers from github.com URLs",
    regex=(
        r"github\.com/(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)"
        r"/(?:pull|issues)/(?P<number>\d+)"
    ),
    tool_type=ToolType.GITHUB,
    confidence=ConfidenceTier.HIGH,
    examples=(
        PatternExample(
            "https://github.com/acme/backend/pull/42", "acme/backend#42"
        ),
        PatternExample(
            "Tracked in https://github.com/Acme/Web-App/issues/7#issuecomment-1",
            "acme/web-app#7",
            source="jira",
        ),
    ),
    negative_examples=(
        "https://github.com/acme/backend",
        "https://github.com/acme/backend/pulls",
    ),
)

github_repo_ref = RepoReferencePattern(
    id="github-repo-ref-v1",
    name="GitHub Shorthand Reference",
    family="github-repo-ref",
    version=1,
    description=(
        "owner/repo#N shorthand references in free text; medium because "
        "a slash-hash pair can occur outside GitHub"
    ),
    regex=(
        r"(?<![\w/.-])(?P<owner>[A-Za-z0-9][A-Za-z0-9-]*)"
        r"/(?P<repo>[A-Za-z0-9_.-]+)#(?P<number>\d+)\b"
    ),
    tool_type=ToolType.GITHUB,
    confidence=ConfidenceTier.MEDIUM,
    examples=(
        PatternExample("See acme/backend#42 for details", "acme/backend#42"),
        PatternExample("Depends on acme/infra.tools#3", "acme/infra.tools#3"),
    ),
    negative_examples=(
        "Closes #42",
        "https://docs.example.com/guide/setup#install",
    ),
)

github_local_ref = LocalReferencePattern(
    id="github-local-ref-v1",
    name="Bare Issue Number",
    family="github-local-ref",
    version=1,
    description="Bare #N references without repository context",
    regex=r"(?<![\w/#&])#(?P<number>\d+)\b",
    tool_type=ToolType.GITHUB,
    confidence=ConfidenceTier.MEDIUM,
    examples=(
        PatternExample("Fixes #42", "local#42"),
        PatternExample("Follow-up to #7, see notes", "local#7"),
    ),
    negative_examples=(
        "See acme/backend#42",
        "Price is &#36;5",
        "Heading link page#intro",
    ),
)

PATTERNS = (github_pr_url, github_repo_ref, github_local_ref)
