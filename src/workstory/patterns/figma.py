"""Figma file patterns."""

from workstory.constants import ConfidenceTier, ToolType
from workstory.patterns.base import PatternExample, PrefixedIdPattern

figma_file_url = PrefixedIdPattern(
    id="figma-file-url-v1",
    name="Figma File URL",
    family="figma-file-url",
    version=1,
    description="Figma file keys from file/design/proto URLs",
    regex=r"figma\.com/(?:file|design|proto)/([A-Za-z0-9]{6,})",
    tool_type=ToolType.FIGMA,
    confidence=ConfidenceTier.HIGH,
    prefix="figma",
    examples=(
        PatternExample(
            "https://www.figma.com/file/ABC123XYZ/Design", "figma:ABC123XYZ"
        ),
        PatternExample(
            "Mocks: https://www.figma.com/design/FigMobileNotif/Mobile?node-id=1-2",
            "figma:FigMobileNotif",
            source="jira",
        ),
    ),
    negative_examples=(
        "https://www.figma.com/files/recent",
        "https://www.figma.com/community",
    ),
)

figma_file_rawdata = PrefixedIdPattern(
    id="figma-file-rawdata-v1",
    name="Figma Raw Data File Key",
    family="figma-file-rawdata",
    version=1,
    description="Figma fileKey from JSON rawData",
    regex=r'"fileKey"\s*:\s*"([A-Za-z0-9]{6,})"',
    tool_type=ToolType.FIGMA,
    confidence=ConfidenceTier.MEDIUM,
    prefix="figma",
    examples=(
        PatternExample(
            '{"fileKey": "ABC123XYZ", "name": "Design"}',
            "figma:ABC123XYZ",
            source="figma-rawdata",
        ),
    ),
    negative_examples=('{"fileKey": "abc"}',),
)

PATTERNS = (figma_file_url, figma_file_rawdata)
