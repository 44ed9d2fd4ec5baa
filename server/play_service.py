"""REST service to play Suited Rummy against the heuristic bot."""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from engine.persistence import JsonFileStore, MemoryStore, SnapshotStore
from engine.service import GameService

logger = logging.getLogger(__name__)

# Snapshots are kept on disk per session when this is set, in memory otherwise.
SNAPSHOT_DIR = os.environ.get("RUMMY_SNAPSHOT_DIR")


class StartRequest(BaseModel):
    player_name: str = Field("Player", min_length=1, max_length=40)
    # Doubles as the snapshot file name, so it must stay a plain token.
    session_id: Optional[str] = Field(None, pattern=r"^[A-Za-z0-9_-]{1,64}$")


class DrawRequest(BaseModel):
    source: str = Field("deck", pattern="^(deck|discard)$")
    index: Optional[int] = None


class MeldRequest(BaseModel):
    card_ids: List[str] = Field(min_length=3)


class CardRequest(BaseModel):
    card_id: str


sessions: Dict[str, GameService] = {}


app = FastAPI(title="Suited Rummy Play Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def make_store(session_id: str) -> SnapshotStore:
    if SNAPSHOT_DIR:
        return JsonFileStore(Path(SNAPSHOT_DIR) / f"{session_id}.json")
    return MemoryStore()


def ensure_session(session_id: str) -> GameService:
    service = sessions.get(session_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return service


def respond(session_id: str, service: GameService, accepted: bool = True) -> Dict[str, object]:
    return {"session_id": session_id, "accepted": accepted, "state": asdict(service.get_view())}


@app.post("/session/start")
def start_session(request: StartRequest) -> Dict[str, object]:
    session_id = request.session_id or uuid.uuid4().hex
    service = GameService(store=make_store(session_id))
    service.resume(request.player_name)
    sessions[session_id] = service
    logger.info("Session %s started for %s", session_id, request.player_name)
    return respond(session_id, service)


@app.get("/session/{session_id}")
def get_session(session_id: str) -> Dict[str, object]:
    return respond(session_id, ensure_session(session_id))


@app.post("/session/{session_id}/draw")
def draw(session_id: str, request: DrawRequest) -> Dict[str, object]:
    service = ensure_session(session_id)
    if request.source == "deck":
        accepted = service.draw_from_deck()
    else:
        if request.index is None:
            raise HTTPException(status_code=422, detail="index is required when drawing from the discard pile")
        accepted = service.draw_from_discard(request.index)
    return respond(session_id, service, accepted)


@app.post("/session/{session_id}/meld")
def play_meld(session_id: str, request: MeldRequest) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.play_meld(request.card_ids))


@app.post("/session/{session_id}/meld/{meld_id}/add")
def add_to_meld(session_id: str, meld_id: str, request: CardRequest) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.add_to_meld(request.card_id, meld_id))


@app.post("/session/{session_id}/meld/{meld_id}/replace-joker")
def replace_joker(session_id: str, meld_id: str, request: CardRequest) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.replace_joker(request.card_id, meld_id))


@app.post("/session/{session_id}/meld/{meld_id}/close")
def close_meld(session_id: str, meld_id: str) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.close_meld(meld_id))


@app.post("/session/{session_id}/meld/{meld_id}/open")
def open_meld(session_id: str, meld_id: str) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.open_meld(meld_id))


@app.post("/session/{session_id}/discard")
def discard(session_id: str, request: CardRequest) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.discard(request.card_id))


@app.post("/session/{session_id}/bot-step")
def bot_step(session_id: str) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.bot_step())


@app.post("/session/{session_id}/next-round")
def next_round(session_id: str) -> Dict[str, object]:
    service = ensure_session(session_id)
    return respond(session_id, service, service.next_round())


@app.post("/session/{session_id}/restart")
def restart(session_id: str) -> Dict[str, object]:
    service = ensure_session(session_id)
    service.restart()
    return respond(session_id, service)
