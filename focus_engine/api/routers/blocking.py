"""
/blocking — the rule table the extension mirrors, and the page-guard check.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request

from ...api.schemas import BlockCheckOut, BlockRuleOut
from ...blocking.guard import is_host_blocked
from ...session.state import SessionState
from ...storage import PersistenceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blocking", tags=["blocking"])


def _get_services(request: Request):
    return request.app.state.services


@router.get("/rules", response_model=List[BlockRuleOut])
async def get_rules(services=Depends(_get_services)):
    """Currently installed redirect rules, ordered by id."""
    # Runs on the event loop, the same thread that replaces the table
    return [BlockRuleOut(**r.__dict__) for r in services["rule_table"].rules()]


@router.get("/check", response_model=BlockCheckOut)
def check_host(host: str = Query(..., min_length=1), services=Depends(_get_services)):
    """Page guard. Reads the durable records, not the scheduler."""
    try:
        state = services["session_store"].load() or SessionState()
    except PersistenceError:
        logger.warning("Session record unreadable, treating session as idle", exc_info=True)
        state = SessionState()
    settings = services["settings_store"].load()
    return BlockCheckOut(host=host, blocked=is_host_blocked(host, state, settings))
