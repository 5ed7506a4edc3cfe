"""Pure change classification: local, baseline and candidate checksums -> action.

A missing baseline or candidate is a distinct "no value" state which never
equals any checksum, including another missing value.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from kit_sync.schemas import ActionKind


@dataclass(frozen=True)
class ChangeFacts:
    """The boolean facts the decision table is written over."""

    local_exists: bool
    baseline_present: bool
    candidate_present: bool
    local_matches_baseline: bool
    local_matches_candidate: bool
    baseline_matches_candidate: bool

    @classmethod
    def from_checksums(
        cls,
        local: Optional[str],
        baseline: Optional[str],
        candidate: Optional[str],
        local_exists: Optional[bool] = None,
    ) -> "ChangeFacts":
        if local_exists is None:
            local_exists = local is not None

        def same(a: Optional[str], b: Optional[str]) -> bool:
            return a is not None and b is not None and a == b

        local_value = local if local_exists else None
        return cls(
            local_exists=local_exists,
            baseline_present=baseline is not None,
            candidate_present=candidate is not None,
            local_matches_baseline=same(local_value, baseline),
            local_matches_candidate=same(local_value, candidate),
            baseline_matches_candidate=same(baseline, candidate),
        )


Rule = Tuple[Callable[[ChangeFacts], bool], ActionKind, str]

# First matching rule wins.
DECISION_RULES: List[Rule] = [
    (
        lambda f: not f.candidate_present and f.baseline_present and f.local_matches_baseline,
        ActionKind.DELETE,
        "Removed from source, local copy untouched",
    ),
    (
        lambda f: not f.candidate_present and f.baseline_present and not f.local_exists,
        ActionKind.DELETE,
        "Removed from source and already gone locally",
    ),
    (
        lambda f: not f.candidate_present and f.baseline_present and not f.local_matches_baseline,
        ActionKind.CONFLICT,
        "Removed from source but edited locally",
    ),
    (
        lambda f: not f.candidate_present,
        ActionKind.SKIP,
        "Not tracked and not in source",
    ),
    (
        lambda f: not f.local_exists,
        ActionKind.INSTALL,
        "New item",
    ),
    (
        lambda f: f.local_matches_candidate,
        ActionKind.SKIP,
        "No changes needed",
    ),
    (
        lambda f: not f.baseline_present,
        ActionKind.SKIP,
        "User-owned file, never tracked, not overwriting",
    ),
    (
        lambda f: f.local_matches_baseline and not f.baseline_matches_candidate,
        ActionKind.UPDATE,
        "Source updated, no local edits",
    ),
    (
        lambda f: not f.local_matches_baseline
        and not f.baseline_matches_candidate
        and not f.local_matches_candidate,
        ActionKind.CONFLICT,
        "Both source and local copy modified",
    ),
]

FALLBACK_RULE: Tuple[ActionKind, str] = (
    ActionKind.SKIP,
    "Local edit, nothing new in source",
)


def classify_facts(facts: ChangeFacts) -> Tuple[ActionKind, str]:
    """Apply the decision table to precomputed facts."""
    for predicate, kind, reason in DECISION_RULES:
        if predicate(facts):
            return kind, reason
    return FALLBACK_RULE


def classify_change(
    local: Optional[str],
    baseline: Optional[str],
    candidate: Optional[str],
    local_exists: Optional[bool] = None,
) -> Tuple[ActionKind, str]:
    """
    Classify one item from its checksums.

    Args:
        local: Checksum of the file on disk, None if absent
        baseline: Checksum kit-sync last wrote, None if never tool-managed
        candidate: Checksum of the proposed content, None if the source removed the item
        local_exists: Override for existence, defaults to `local is not None`

    Returns:
        Tuple of (action kind, human-readable reason)
    """
    return classify_facts(ChangeFacts.from_checksums(local, baseline, candidate, local_exists))
