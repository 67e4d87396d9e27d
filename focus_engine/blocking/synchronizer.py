"""
Blocking rule synchronizer — replaces the whole rule table on every call.
"""

from __future__ import annotations

import logging
from typing import Sequence

from .rules import RuleTable, RuleTableError, build_rules

logger = logging.getLogger(__name__)


class RuleSyncError(Exception):
    """Raised when the rule table could not be brought in line with the phase."""


class BlockingRuleSynchronizer:

    def __init__(self, table: RuleTable, redirect_path: str = "/blocked.html"):
        self._table = table
        self._redirect_path = redirect_path

    @property
    def table(self) -> RuleTable:
        return self._table

    def synchronize(self, enable: bool, sites: Sequence[str]) -> int:
        """
        Remove every installed rule, then install two per site if *enable*.
        Returns the number of rules installed.
        """
        try:
            existing = self._table.rule_ids()
            if existing:
                self._table.remove(existing)
            if not enable:
                logger.info("Blocking disabled (%d rules removed)", len(existing))
                return 0
            rules = build_rules(sites, self._redirect_path)
            self._table.add(rules)
        except RuleTableError as e:
            raise RuleSyncError(str(e)) from e
        logger.info("Blocking enabled for %d sites (%d rules)", len(sites), len(rules))
        return len(rules)
