"""Versioned pattern registry with build-time validation.

A registry is built once per process from an explicit, ordered list of
patterns. Building it is the only place configuration errors surface:
if ``PatternRegistry(...)`` returns, every active pattern compiles,
passes its own examples, and is the single current version of its
family.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable

from workstory.constants import TIER_RANK, ConfidenceTier, ToolType
from workstory.patterns import atlassian, figma, github, google, jira, slack
from workstory.patterns.base import RefPattern

logger = logging.getLogger(__name__)


class PatternConfigurationError(ValueError):
    """The pattern set is invalid; the pipeline must not start."""

    def __init__(self, problems: list[tuple[str, str]]) -> None:
        self.problems = problems
        lines = "\n".join(f"  - [{pid}] {msg}" for pid, msg in problems)
        super().__init__(f"Pattern registry validation failed:\n{lines}")


class PatternRegistry:
    """Catalog of reference patterns; executes only current versions."""

    def __init__(self, patterns: Iterable[RefPattern]) -> None:
        self._patterns: dict[str, RefPattern] = {}
        problems: list[tuple[str, str]] = []

        for p in patterns:
            if p.id in self._patterns:
                problems.append((p.id, "duplicate pattern id"))
                continue
            self._patterns[p.id] = p

        if not self._patterns:
            problems.append(("*", "registry has no registered patterns"))

        problems.extend(self._check_compiles())
        problems.extend(self._check_supersession())
        if problems:
            raise PatternConfigurationError(problems)

        self._active = self._resolve_active()
        problems.extend(self._check_families())
        problems.extend(self._check_examples())
        if problems:
            raise PatternConfigurationError(problems)

        logger.debug(
            "event=registry_built patterns=%d active=%d",
            len(self._patterns),
            len(self._active),
        )

    # -- Queries -----------------------------------------------------------

    def active_patterns(self) -> list[RefPattern]:
        """Current version of each family, in registration order."""
        return list(self._active)

    def all_patterns(self) -> list[RefPattern]:
        """Every registered pattern, superseded versions included."""
        return list(self._patterns.values())

    def get(self, pattern_id: str) -> RefPattern | None:
        """Look up any version by id (superseded ones stay addressable)."""
        return self._patterns.get(pattern_id)

    def is_active(self, pattern_id: str) -> bool:
        return any(p.id == pattern_id for p in self._active)

    def select(
        self,
        *,
        pattern_ids: Iterable[str] | None = None,
        tool_types: Iterable[ToolType] | None = None,
        min_confidence: ConfidenceTier | None = None,
    ) -> list[RefPattern]:
        """Filter the active set. Superseded ids never come back."""
        patterns = self.active_patterns()
        if pattern_ids is not None:
            allowed_ids = set(pattern_ids)
            patterns = [p for p in patterns if p.id in allowed_ids]
        if tool_types is not None:
            allowed_tools = set(tool_types)
            patterns = [p for p in patterns if p.tool_type in allowed_tools]
        if min_confidence is not None:
            floor = TIER_RANK[min_confidence]
            patterns = [
                p for p in patterns if TIER_RANK[p.confidence] >= floor
            ]
        return patterns

    def __len__(self) -> int:
        return len(self._active)

    # -- Validation --------------------------------------------------------

    def _check_compiles(self) -> list[tuple[str, str]]:
        problems: list[tuple[str, str]] = []
        for p in self._patterns.values():
            try:
                p.compiled  # noqa: B018
            except re.error as exc:
                problems.append((p.id, f"invalid regex: {exc}"))
        return problems

    def _check_supersession(self) -> list[tuple[str, str]]:
        problems: list[tuple[str, str]] = []
        for p in self._patterns.values():
            if p.supersedes is None:
                continue
            target = self._patterns.get(p.supersedes)
            if target is None:
                problems.append(
                    (p.id, f"supersedes unknown pattern {p.supersedes!r}")
                )
            elif target.family != p.family:
                problems.append(
                    (
                        p.id,
                        f"supersedes {target.id!r} from a different "
                        f"family ({target.family!r})",
                    )
                )
            elif target.version >= p.version:
                problems.append(
                    (
                        p.id,
                        f"supersedes {target.id!r} which is not an "
                        "older version",
                    )
                )

        for start in self._patterns.values():
            seen: set[str] = set()
            cur: RefPattern | None = start
            while cur is not None and cur.supersedes is not None:
                if cur.id in seen:
                    problems.append((start.id, "supersedes cycle"))
                    break
                seen.add(cur.id)
                cur = self._patterns.get(cur.supersedes)
        return problems

    def _resolve_active(self) -> list[RefPattern]:
        superseded = {
            p.supersedes
            for p in self._patterns.values()
            if p.supersedes is not None
        }
        return [
            p for p in self._patterns.values() if p.id not in superseded
        ]

    def _check_families(self) -> list[tuple[str, str]]:
        by_family: dict[str, list[str]] = defaultdict(list)
        for p in self._active:
            by_family[p.family].append(p.id)
        return [
            (
                ids[0],
                f"family {family!r} has {len(ids)} current versions: "
                + ", ".join(ids),
            )
            for family, ids in by_family.items()
            if len(ids) > 1
        ]

    def _check_examples(self) -> list[tuple[str, str]]:
        problems: list[tuple[str, str]] = []
        for p in self._patterns.values():
            for ex in p.examples:
                refs = p.refs(ex.input)
                if ex.expected_ref not in refs:
                    problems.append(
                        (
                            p.id,
                            f"example {ex.input!r} expected "
                            f"{ex.expected_ref!r}, got {refs}",
                        )
                    )
            for neg in p.negative_examples:
                refs = p.refs(neg)
                if refs:
                    problems.append(
                        (
                            p.id,
                            f"negative example {neg!r} matched {refs}",
                        )
                    )
        return problems


DEFAULT_PATTERNS: tuple[RefPattern, ...] = (
    *jira.PATTERNS,
    *github.PATTERNS,
    *atlassian.PATTERNS,
    *google.PATTERNS,
    *figma.PATTERNS,
    *slack.PATTERNS,
)


def build_default_registry() -> PatternRegistry:
    """Registry over every built-in pattern family."""
    return PatternRegistry(DEFAULT_PATTERNS)
