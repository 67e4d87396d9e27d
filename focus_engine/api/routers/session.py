"""
/session — session state query, timer commands, and the notification stream.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, WebSocket, WebSocketDisconnect

from ...api.schemas import CommandResultOut, SessionStateOut, SettingsModel, StateOut

router = APIRouter(prefix="/session", tags=["session"])


def _get_scheduler(request: Request):
    return request.app.state.scheduler


@router.get("", response_model=StateOut)
def get_state(scheduler=Depends(_get_scheduler)):
    """Return the session state (remaining time freshly computed) and settings."""
    state, settings = scheduler.get_state()
    return StateOut(
        state=SessionStateOut.from_state(state),
        settings=SettingsModel.from_settings(settings),
    )


def _result(ok: bool, response: Response) -> CommandResultOut:
    # A failed durable write is retryable; in-memory state is kept
    if not ok:
        response.status_code = 503
    return CommandResultOut(success=ok)


@router.post("/start", response_model=CommandResultOut)
async def start_session(response: Response, scheduler=Depends(_get_scheduler)):
    """Start a focus phase. No-op unless idle."""
    return _result(await scheduler.start(), response)


@router.post("/pause", response_model=CommandResultOut)
async def pause_session(response: Response, scheduler=Depends(_get_scheduler)):
    """Pause the countdown. Blocking stays in effect."""
    return _result(await scheduler.pause(), response)


@router.post("/resume", response_model=CommandResultOut)
async def resume_session(response: Response, scheduler=Depends(_get_scheduler)):
    return _result(await scheduler.resume(), response)


@router.post("/reset", response_model=CommandResultOut)
async def reset_session(response: Response, scheduler=Depends(_get_scheduler)):
    """Return to idle from any state and lift all blocking."""
    return _result(await scheduler.reset(), response)


@router.post("/skip", response_model=CommandResultOut)
async def skip_phase(response: Response, scheduler=Depends(_get_scheduler)):
    """End the running phase now, as if its time ran out."""
    return _result(await scheduler.skip(), response)


@router.websocket("/ws")
async def session_websocket(websocket: WebSocket):
    """
    WebSocket stream — pushes tick and phase_ended notifications.
    Best-effort: a client that falls behind misses events.
    """
    bus = websocket.app.state.bus
    queue = bus.subscribe_queue()
    receiver: Optional[asyncio.Task] = None
    getter: Optional[asyncio.Task] = None
    try:
        await websocket.accept()
        receiver = asyncio.create_task(websocket.receive())
        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({receiver, getter}, return_when=asyncio.FIRST_COMPLETED)
            if receiver in done:
                # Incoming client messages are ignored; a disconnect ends the stream
                if receiver.result()["type"] == "websocket.disconnect":
                    break
                receiver = asyncio.create_task(websocket.receive())
            if getter in done:
                await websocket.send_json(getter.result())
            else:
                getter.cancel()
    except WebSocketDisconnect:
        pass
    finally:
        for task in (receiver, getter):
            if task is not None and not task.done():
                task.cancel()
        bus.unsubscribe_queue(queue)
