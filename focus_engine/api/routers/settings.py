"""
/settings — read and replace user-tunable settings.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from ...api.schemas import SettingsIn, SettingsModel, SettingsOut, SettingsUpdateOut
from ...settings import Settings

router = APIRouter(prefix="/settings", tags=["settings"])


def _get_scheduler(request: Request):
    return request.app.state.scheduler


@router.get("", response_model=SettingsOut)
def read_settings(scheduler=Depends(_get_scheduler)):
    """Return current settings with their defaults for reference."""
    return SettingsOut(
        settings=SettingsModel.from_settings(scheduler.settings),
        defaults=SettingsModel.from_settings(Settings()),
    )


@router.put("", response_model=SettingsUpdateOut)
async def write_settings(body: SettingsIn, response: Response, scheduler=Depends(_get_scheduler)):
    """Replace settings wholesale. Duration changes apply from the next phase."""
    data = body.model_dump()
    if data["completed_focus_sessions"] is None:
        data["completed_focus_sessions"] = scheduler.settings.completed_focus_sessions
    ok = await scheduler.update_settings(Settings(**data))
    if not ok:
        response.status_code = 503
    return SettingsUpdateOut(
        success=ok,
        settings=SettingsModel.from_settings(scheduler.settings),
    )
