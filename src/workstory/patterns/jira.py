"""Jira ticket key patterns.

Real-world sources: commit messages ("Fixes AUTH-123"), PR titles,
Slack threads, and Jira API payloads (``"key": "AUTH-123"``).
"""

from workstory.constants import ConfidenceTier, ToolType
from workstory.patterns.base import PatternExample, TicketKeyPattern

jira_ticket_v1 = TicketKeyPattern(
    id="jira-ticket-v1",
    name="Jira Ticket",
    family="jira-ticket",
    version=1,
    description="Uppercase project key followed by an issue number",
    regex=r"\b[A-Z]+-\d+\b",
    tool_type=ToolType.JIRA,
    confidence=ConfidenceTier.HIGH,
    examples=(
        PatternExample("Fixed bug in AUTH-123", "AUTH-123"),
    ),
)

# v2: project keys are 2-10 characters (Jira's limit), may contain digits
# after the first letter, and known standards/encodings are rejected.
jira_ticket_v2 = TicketKeyPattern(
    id="jira-ticket-v2",
    name="Jira Ticket",
    family="jira-ticket",
    version=2,
    description="Jira issue keys with 2-10 character project keys",
    regex=r"\b[A-Z][A-Z0-9]{1,9}-\d+\b",
    tool_type=ToolType.JIRA,
    confidence=ConfidenceTier.HIGH,
    excluded_projects=frozenset({
        "UTF", "ISO", "SHA", "RFC", "TLS", "SSL", "HTTP", "X509",
    }),
    examples=(
        PatternExample("Fixed bug in AUTH-123", "AUTH-123"),
        PatternExample("AB-1 is valid", "AB-1"),
        PatternExample("ABCDEFGHIJ-12345 is valid", "ABCDEFGHIJ-12345"),
        PatternExample('{"key": "BUG-999"}', "BUG-999", source="jira"),
        PatternExample(
            "https://acme.atlassian.net/browse/CORE-456",
            "CORE-456",
        ),
    ),
    negative_examples=(
        "X-123 should not match",
        "Version V2.0.0-beta released",
        "Files are encoded as UTF-8",
        "Timestamps use ISO-8601",
        "auth-123 lowercase",
    ),
    supersedes="jira-ticket-v1",
)

PATTERNS = (jira_ticket_v1, jira_ticket_v2)
