"""Google Workspace patterns.

Extracts:
- Google Docs: docs.google.com/document/d/{id}
- Google Sheets: docs.google.com/spreadsheets/d/{id}
- Google Slides: docs.google.com/presentation/d/{id}
- Google Drive files: drive.google.com/file/d/{id}
- Google Drive folders: drive.google.com/drive/folders/{id}
- Google Calendar events: calendar.google.com/calendar/event?eid={id}
- Google Meet: meet.google.com/{code}

Real-world sources: Jira descriptions ("Design doc: https://docs..."),
meeting notes ("Recording: https://drive..."), calendar invites
("Join: https://meet...").
"""

import re

from workstory.constants import ConfidenceTier, ToolType
from workstory.patterns.base import PatternExample, PrefixedIdPattern

_DOC_ID = r"([a-zA-Z0-9_-]{25,})"
_MEET_CODE = r"([a-z]{3,4}-[a-z]{3,4}-[a-z]{3,4})"

google_docs = PrefixedIdPattern(
    id="google-docs-v1",
    name="Google Docs",
    family="google-docs",
    version=1,
    description="Google Docs document IDs from URLs",
    regex=r"docs\.google\.com/document/d/" + _DOC_ID,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.HIGH,
    prefix="gdoc",
    examples=(
        PatternExample(
            "https://docs.google.com/document/d/1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms/edit",
            "gdoc:1BxiMVs0XRA5nFMdKvBdBZjgmUUqptlbs74OgvE2upms",
        ),
        PatternExample(
            "Design doc: https://docs.google.com/document/d/1AbC123_defGHI456-jklMNOpqrs/edit#heading=h.xyz",
            "gdoc:1AbC123_defGHI456-jklMNOpqrs",
            source="jira",
        ),
    ),
    negative_examples=(
        "https://docs.google.com/forms/d/123",
        "https://docs.google.com/document/u/0/",
    ),
)

google_sheets = PrefixedIdPattern(
    id="google-sheets-v1",
    name="Google Sheets",
    family="google-sheets",
    version=1,
    description="Google Sheets spreadsheet IDs from URLs",
    regex=r"docs\.google\.com/spreadsheets/d/" + _DOC_ID,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.HIGH,
    prefix="gsheet",
    examples=(
        PatternExample(
            "https://docs.google.com/spreadsheets/d/1AbC123_defGHI456-jklMNOpqrs/edit#gid=0",
            "gsheet:1AbC123_defGHI456-jklMNOpqrs",
        ),
    ),
    negative_examples=("https://docs.google.com/spreadsheets/",),
)

google_slides = PrefixedIdPattern(
    id="google-slides-v1",
    name="Google Slides",
    family="google-slides",
    version=1,
    description="Google Slides presentation IDs from URLs",
    regex=r"docs\.google\.com/presentation/d/" + _DOC_ID,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.HIGH,
    prefix="gslides",
    examples=(
        PatternExample(
            "Deck: https://docs.google.com/presentation/d/1AbC123_defGHI456-jklMNOpqrs/edit#slide=id.g123",
            "gslides:1AbC123_defGHI456-jklMNOpqrs",
            source="outlook",
        ),
    ),
    negative_examples=("https://docs.google.com/presentation/",),
)

google_drive_file = PrefixedIdPattern(
    id="google-drive-file-v1",
    name="Google Drive File",
    family="google-drive-file",
    version=1,
    description="Google Drive file IDs from URLs",
    regex=r"drive\.google\.com/file/d/" + _DOC_ID,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.HIGH,
    prefix="gdrive",
    examples=(
        PatternExample(
            "Recording: https://drive.google.com/file/d/1AbC123_defGHI456-jklMNOpqrs/view?usp=sharing",
            "gdrive:1AbC123_defGHI456-jklMNOpqrs",
            source="outlook",
        ),
    ),
    negative_examples=("https://drive.google.com/drive/my-drive",),
)

google_drive_folder = PrefixedIdPattern(
    id="google-drive-folder-v1",
    name="Google Drive Folder",
    family="google-drive-folder",
    version=1,
    description="Google Drive folder IDs from URLs",
    regex=r"drive\.google\.com/drive/folders/" + _DOC_ID,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.HIGH,
    prefix="gfolder",
    examples=(
        PatternExample(
            "Project files: https://drive.google.com/drive/folders/1AbC123_defGHI456-jklMNOpqrs?usp=drive_link",
            "gfolder:1AbC123_defGHI456-jklMNOpqrs",
            source="confluence",
        ),
    ),
    negative_examples=("https://drive.google.com/drive/my-drive",),
)

# Meet codes are 3 groups of 3-4 letters separated by hyphens
google_meet = PrefixedIdPattern(
    id="google-meet-v1",
    name="Google Meet",
    family="google-meet",
    version=1,
    description="Google Meet meeting codes from URLs",
    regex=r"meet\.google\.com/" + _MEET_CODE,
    flags=re.IGNORECASE,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.HIGH,
    prefix="gmeet",
    lowercase=True,
    examples=(
        PatternExample(
            "Join: https://meet.google.com/xyz-uvwx-stu", "gmeet:xyz-uvwx-stu"
        ),
        PatternExample(
            "https://meet.google.com/ABCD-efgh-ijkl", "gmeet:abcd-efgh-ijkl"
        ),
    ),
    negative_examples=(
        "https://meet.google.com/",
        "https://meet.google.com/lookup/abc",
    ),
)

# Event IDs are opaque and not guaranteed stable, hence medium.
google_calendar = PrefixedIdPattern(
    id="google-calendar-v1",
    name="Google Calendar Event",
    family="google-calendar",
    version=1,
    description="Google Calendar event IDs from URLs",
    regex=(
        r"calendar\.google\.com/calendar/(?:event\?eid=|r/eventedit/)"
        r"([a-zA-Z0-9_=-]+)"
    ),
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.MEDIUM,
    prefix="gcal",
    examples=(
        PatternExample(
            "https://calendar.google.com/calendar/event?eid=NXJqbG1vNnRuYWJjZGVm",
            "gcal:NXJqbG1vNnRuYWJjZGVm",
        ),
        PatternExample(
            "https://calendar.google.com/calendar/r/eventedit/abc123def456ghi789",
            "gcal:abc123def456ghi789",
        ),
    ),
    negative_examples=(
        "https://calendar.google.com/calendar/",
        "https://calendar.google.com/calendar/r/month",
    ),
)

# ---------------------------------------------------------------------------
# Raw data patterns
#
# API responses carry structured fields (documentId, meetCode) that never
# appear in a URL. rawData is JSON-serialized and these fields are matched
# as text: no per-tool parser, nested structures handled for free, but
# adjacency-only matching is weaker than parsing, so they stay medium.
# ---------------------------------------------------------------------------

google_docs_rawdata = PrefixedIdPattern(
    id="google-docs-rawdata-v1",
    name="Google Docs Raw Data ID",
    family="google-docs-rawdata",
    version=1,
    description="Google Docs documentId from JSON rawData",
    regex=r'"documentId"\s*:\s*"' + _DOC_ID + '"',
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.MEDIUM,
    prefix="gdoc",
    examples=(
        PatternExample(
            '{"documentId": "1AbC123XYZ456_defGHI789jkl", "title": "Doc"}',
            "gdoc:1AbC123XYZ456_defGHI789jkl",
            source="google-rawdata",
        ),
    ),
    negative_examples=('{"documentId": "short"}',),
)

google_meet_rawdata = PrefixedIdPattern(
    id="google-meet-rawdata-v1",
    name="Google Meet Raw Data Code",
    family="google-meet-rawdata",
    version=1,
    description="Google Meet meetCode from JSON rawData",
    regex=r'"meetCode"\s*:\s*"' + _MEET_CODE + '"',
    flags=re.IGNORECASE,
    tool_type=ToolType.GOOGLE,
    confidence=ConfidenceTier.MEDIUM,
    prefix="gmeet",
    lowercase=True,
    examples=(
        PatternExample(
            '{"meetCode": "abc-defg-hij", "duration": 45}',
            "gmeet:abc-defg-hij",
            source="google-rawdata",
        ),
    ),
    negative_examples=('{"meetCode": "invalid"}',),
)

PATTERNS = (
    google_docs,
    google_sheets,
    google_slides,
    google_drive_file,
    google_drive_folder,
    google_meet,
    google_calendar,
    google_docs_rawdata,
    google_meet_rawdata,
)
