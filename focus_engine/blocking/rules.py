"""
Block rules — declarative redirects applied to top-level navigations.

The browser extension mirrors the RuleTable through /blocking/rules; the
engine only decides which rules exist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

MAIN_FRAME = "main_frame"


class RuleTableError(Exception):
    """Raised when the rule table rejects an update."""


@dataclass(frozen=True)
class BlockRule:
    id: int
    url_filter: str
    redirect_path: str
    priority: int = 1
    resource_types: List[str] = field(default_factory=lambda: [MAIN_FRAME])


def build_rules(sites: Sequence[str], redirect_path: str) -> List[BlockRule]:
    """Two rules per site: the bare host and any subdomain, IDs 2i+1 and 2i+2."""
    rules: List[BlockRule] = []
    for i, site in enumerate(sites):
        rules.append(BlockRule(id=i * 2 + 1, url_filter=f"*://{site}/*", redirect_path=redirect_path))
        rules.append(BlockRule(id=i * 2 + 2, url_filter=f"*://*.{site}/*", redirect_path=redirect_path))
    return rules


class RuleTable:
    """In-process dynamic rule table keyed by rule id."""

    def __init__(self):
        self._rules: Dict[int, BlockRule] = {}

    def rule_ids(self) -> List[int]:
        return sorted(list(self._rules))

    def rules(self) -> List[BlockRule]:
        # One snapshot; readers may run outside the event loop thread
        return sorted(list(self._rules.values()), key=lambda r: r.id)

    def remove(self, rule_ids: Iterable[int]) -> None:
        for rule_id in rule_ids:
            self._rules.pop(rule_id, None)

    def add(self, rules: Iterable[BlockRule]) -> None:
        rules = list(rules)
        ids = [r.id for r in rules]
        if len(set(ids)) != len(ids):
            raise RuleTableError("duplicate rule ids in update")
        clashing = [i for i in ids if i in self._rules]
        if clashing:
            raise RuleTableError(f"rule ids already installed: {clashing}")
        for rule in rules:
            self._rules[rule.id] = rule

    def __len__(self) -> int:
        return len(self._rules)
