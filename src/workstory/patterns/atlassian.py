"""Confluence page patterns."""

from workstory.constants import ConfidenceTier, ToolType
from workstory.patterns.base import PatternExample, PrefixedIdPattern

confluence_page_url = PrefixedIdPattern(
    id="confluence-page-url-v1",
    name="Confluence Page URL",
    family="confluence-page-url",
    version=1,
    description="Confluence page IDs from wiki URLs",
    regex=(
        r"atlassian\.net/wiki/(?:spaces/[^/\s]+/pages/"
        r"|pages/viewpage\.action\?pageId=)(\d+)"
    ),
    tool_type=ToolType.CONFLUENCE,
    confidence=ConfidenceTier.HIGH,
    prefix="confluence",
    examples=(
        PatternExample(
            "Design: https://acme.atlassian.net/wiki/spaces/ENG/pages/987654/Design",
            "confluence:987654",
        ),
        PatternExample(
            "https://acme.atlassian.net/wiki/pages/viewpage.action?pageId=111222",
            "confluence:111222",
        ),
    ),
    negative_examples=(
        "https://acme.atlassian.net/wiki/spaces/ENG/overview",
    ),
)

# rawData pattern: the Confluence API exposes the page id only as a
# JSON field. Matched as text, hence medium.
confluence_page_rawdata = PrefixedIdPattern(
    id="confluence-page-rawdata-v1",
    name="Confluence Raw Data Page ID",
    family="confluence-page-rawdata",
    version=1,
    description="Confluence pageId from JSON rawData",
    regex=r'"pageId"\s*:\s*"?(\d+)"?',
    tool_type=ToolType.CONFLUENCE,
    confidence=ConfidenceTier.MEDIUM,
    prefix="confluence",
    examples=(
        PatternExample(
            '{"pageId": "987654", "title": "Design"}',
            "confluence:987654",
            source="confluence-rawdata",
        ),
        PatternExample(
            '{"pageId":123456}',
            "confluence:123456",
            source="confluence-rawdata",
        ),
    ),
    negative_examples=('{"pageId": "draft"}',),
)

PATTERNS = (confluence_page_url, confluence_page_rawdata)
