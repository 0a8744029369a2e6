"""Slack channel patterns."""

from workstory.constants import ConfidenceTier, ToolType
from workstory.patterns.base import PatternExample, PrefixedIdPattern

# Channel IDs: C (public), G (private), D (DM) + at least 8 chars
_CHANNEL_ID = r"([CGD][A-Z0-9]{8,})"

slack_channel_url = PrefixedIdPattern(
    id="slack-channel-url-v1",
    name="Slack Channel URL",
    family="slack-channel-url",
    version=1,
    description="Slack channel IDs from archive permalinks",
    regex=r"slack\.com/archives/" + _CHANNEL_ID,
    tool_type=ToolType.SLACK,
    confidence=ConfidenceTier.HIGH,
    prefix="slack",
    examples=(
        PatternExample(
            "https://acme.slack.com/archives/C12345678", "slack:C12345678"
        ),
        PatternExample(
            "Thread: https://acme.slack.com/archives/C0ENGINEERING/p1234567890",
            "slack:C0ENGINEERING",
        ),
    ),
    negative_examples=(
        "https://acme.slack.com/archives/",
        "https://acme.slack.com/archives/general",
    ),
)

slack_channel_rawdata = PrefixedIdPattern(
    id="slack-channel-rawdata-v1",
    name="Slack Raw Data Channel ID",
    family="slack-channel-rawdata",
    version=1,
    description="Slack channelId from JSON rawData",
    regex=r'"channelId"\s*:\s*"' + _CHANNEL_ID + '"',
    tool_type=ToolType.SLACK,
    confidence=ConfidenceTier.MEDIUM,
    prefix="slack",
    examples=(
        PatternExample(
            '{"channelId": "C0PLATFORM", "ts": "1700000001.000"}',
            "slack:C0PLATFORM",
            source="slack-rawdata",
        ),
    ),
    negative_examples=('{"channelId": "general"}',),
)

PATTERNS = (slack_channel_url, slack_channel_rawdata)
