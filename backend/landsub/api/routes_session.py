"""Editing session endpoints: single in-process session."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from landsub.core.editor.session import EditorSession, Outcome
from landsub.core.errors import (
    InvalidCommandError,
    LandSubError,
    SceneInvariantError,
    UnknownEntityError,
)
from landsub.models.schemas import CommandRequest, OutcomeResponse, PointerRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

# One editor per process, like a desktop app with a single open drawing.
_session = EditorSession()


def get_session() -> EditorSession:
    return _session


def raise_http(err: LandSubError) -> None:
    """Map a domain error onto an HTTP status."""
    if isinstance(err, UnknownEntityError):
        raise HTTPException(404, detail=str(err))
    if isinstance(err, InvalidCommandError):
        raise HTTPException(422, detail=str(err))
    if isinstance(err, SceneInvariantError):
        raise HTTPException(409, detail=str(err))
    raise HTTPException(400, detail=str(err))


def _respond(outcome: Outcome) -> OutcomeResponse:
    return OutcomeResponse(**outcome.to_dict(), scene=_session.scene_view())


def _dispatch(event) -> OutcomeResponse:
    try:
        outcome = _session.handle(event)
    except LandSubError as e:
        logger.warning("Rejected %s: %s", type(event).__name__, e)
        raise_http(e)
    return _respond(outcome)


@router.get("/session/scene")
async def get_scene():
    return _session.scene_view()


@router.post("/session/input", response_model=OutcomeResponse)
async def pointer_input(req: PointerRequest):
    return _dispatch(req.to_event())


@router.post("/session/command", response_model=OutcomeResponse)
async def command(req: CommandRequest):
    try:
        event = req.to_event()
    except InvalidCommandError as e:
        raise HTTPException(422, detail=str(e))
    return _dispatch(event)


@router.post("/session/reset", response_model=OutcomeResponse)
async def reset_session():
    """Discard the drawing and its history."""
    global _session
    _session = EditorSession()
    logger.info("Session reset")
    return _respond(Outcome(True, "reset"))
