"""Reference pattern types: one concrete type per normalization shape."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property

from workstory.constants import ConfidenceTier, ToolType


@dataclass(frozen=True)
class PatternExample:
    """An input that must produce ``expected_ref`` for the pattern."""

    input: str
    expected_ref: str
    source: str | None = None


@dataclass(frozen=True)
class RawMatch:
    """A normalized regex hit, before it is attached to an activity."""

    ref: str
    pattern_id: str
    start: int
    end: int
    text: str


@dataclass(frozen=True, kw_only=True)
class RefPattern:
    """A versioned reference extractor.

    ``family`` groups versions of the same logical pattern; a registry
    runs only the current (non-superseded) version of each family.
    ``regex`` is kept as source text and compiled lazily so an invalid
    expression surfaces when the registry is built, not at import.
    """

    id: str
    name: str
    family: str
    version: int
    description: str
    regex: str
    tool_type: ToolType
    confidence: ConfidenceTier
    flags: int = 0
    examples: tuple[PatternExample, ...] = ()
    negative_examples: tuple[str, ...] = ()
    supersedes: str | None = None

    @cached_property
    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.regex, self.flags)

    def normalize(self, match: re.Match[str]) -> str | None:
        """Turn a regex hit into a ref key; None drops the hit."""
        raise NotImplementedError

    def find(self, text: str) -> list[RawMatch]:
        """Run the pattern exhaustively over ``text``."""
        hits: list[RawMatch] = []
        for m in self.compiled.finditer(text):
            ref = self.normalize(m)
            if ref is None:
                continue
            hits.append(
                RawMatch(
                    ref=ref,
                    pattern_id=self.id,
                    start=m.start(),
                    end=m.end(),
                    text=m.group(0),
                )
            )
        return hits

    def refs(self, text: str) -> list[str]:
        """Normalized refs in ``text``, in match order, deduplicated."""
        return list(dict.fromkeys(h.ref for h in self.find(text)))


@dataclass(frozen=True, kw_only=True)
class PrefixedIdPattern(RefPattern):
    """``prefix:<group>`` refs (``gdoc:…``, ``confluence:…``, ``slack:…``)."""

    prefix: str
    group: int = 1
    lowercase: bool = False

    def normalize(self, match: re.Match[str]) -> str | None:
        value = match.group(self.group)
        if self.lowercase:
            value = value.lower()
        return f"{self.prefix}:{value}"


@dataclass(frozen=True, kw_only=True)
class TicketKeyPattern(RefPattern):
    """Issue-tracker keys such as ``AUTH-123``.

    ``excluded_projects`` lists prefixes that look like keys but are
    standards or encodings (``UTF-8``, ``ISO-8601``).
    """

    excluded_projects: frozenset[str] = field(default_factory=frozenset)

    def normalize(self, match: re.Match[str]) -> str | None:
        key = match.group(0).upper()
        project = key.split("-", 1)[0]
        if project in self.excluded_projects:
            return None
        return key


@dataclass(frozen=True, kw_only=True)
class RepoReferencePattern(RefPattern):
    """``owner/repo#N`` refs from URLs or shorthand.

    Groups: owner, repo, number. Owner and repo are lowercased since
    GitHub treats them case-insensitively.
    """

    def normalize(self, match: re.Match[str]) -> str | None:
        owner = match.group("owner").lower()
        repo = match.group("repo").lower()
        if repo.endswith(".git"):
            repo = repo[: -len(".git")]
        return f"{owner}/{repo}#{int(match.group('number'))}"


@dataclass(frozen=True, kw_only=True)
class LocalReferencePattern(RefPattern):
    """Bare ``#N`` refs with no repository context → ``local#N``."""

    def normalize(self, match: re.Match[str]) -> str | None:
        return f"local#{int(match.group('number'))}"
