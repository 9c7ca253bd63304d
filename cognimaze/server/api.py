"""FastAPI 应用定义"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import Field

from ..core.models import AnalysisRequest, CamelModel
from .controller import GameController


class SessionStartRequest(CamelModel):
    user_id: Optional[str] = None
    puzzle_type: Optional[str] = None


class TrackEventRequest(CamelModel):
    session_id: Optional[str] = None
    event_type: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class MoveRequest(CamelModel):
    direction: str


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_app(
    controller: GameController,
    *,
    static_dir: Optional[Path] = None,
) -> FastAPI:
    """构建 FastAPI 实例并注入控制器。"""
    app = FastAPI(title="Cognitive Puzzle API", version="1.0.0")
    app.state.controller = controller

    # 允许前端直接请求
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health():
        return controller.health()

    @app.post("/api/session/start", status_code=201)
    async def start_session(payload: Optional[SessionStartRequest] = None):
        payload = payload or SessionStartRequest()
        session = controller.start_session(payload.user_id, payload.puzzle_type)
        return {
            "success": True,
            "session": session,
            "message": "Game session started successfully",
        }

    @app.post("/api/events/track")
    async def track_event(payload: TrackEventRequest):
        try:
            event = controller.track_event(payload.session_id, payload.event_type, payload.data)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"success": True, "message": "Event tracked successfully", "event": event}

    @app.post("/api/analyze/game")
    def analyze_game(payload: AnalysisRequest):
        try:
            profile = controller.analyze_game(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "success": True,
            "message": "Analysis completed successfully",
            "profile": profile.model_dump(mode="json", by_alias=True),
            "shareable": profile.shareable(),
        }

    @app.get("/api/leaderboard")
    async def leaderboard():
        return {"success": True, "leaderboard": controller.leaderboard(), "updated": _now_iso()}

    @app.get("/api/stats")
    async def stats():
        return {"success": True, "stats": controller.stats(), "timestamp": _now_iso()}

    @app.get("/api/session/{session_id}/state")
    async def session_state(session_id: str):
        try:
            return controller.get_session_state(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc

    @app.get("/api/session/{session_id}/events")
    async def session_events(session_id: str):
        try:
            return {"events": controller.get_session_events(session_id)}
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc

    @app.post("/api/session/{session_id}/move")
    def session_move(session_id: str, payload: MoveRequest):
        try:
            return controller.move(session_id, payload.direction)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    @app.post("/api/session/{session_id}/reset")
    async def session_reset(session_id: str):
        try:
            return controller.reset_session(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc

    if static_dir and static_dir.exists():
        app.mount(
            "/static",
            StaticFiles(directory=static_dir, html=True),
            name="static",
        )

        @app.get("/")
        async def root():
            index_file = static_dir / "index.html"
            if not index_file.exists():
                raise HTTPException(status_code=404, detail="index.html not found")
            return FileResponse(index_file)

    return app
