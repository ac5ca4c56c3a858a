from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict

from ytsort.dependencies import get_session
from ytsort.models.video import UnknownSortKeyError
from ytsort.services.sort_session import SessionStatus, SortSession

router = APIRouter()


class VideosResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: SessionStatus
    processed: int
    total: int
    data: list[dict[str, Any]]


class StatusResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: SessionStatus
    processed: int
    total: int
    collected: int
    error: str | None = None


@router.get("/", response_class=HTMLResponse, tags=["videos"], operation_id="render_videos")
def render_videos(
    session: Annotated[SortSession, Depends(get_session)],
    sort: Annotated[str | None, Query(description="Record field to sort by.")] = None,
) -> HTMLResponse:
    try:
        html_text = session.render(sort)
    except UnknownSortKeyError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return HTMLResponse(
        content=html_text,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )


@router.get("/videos", tags=["videos"], operation_id="list_videos")
def list_videos(session: Annotated[SortSession, Depends(get_session)]) -> VideosResponse:
    snapshot = session.snapshot()
    return VideosResponse(
        status=snapshot.status,
        processed=snapshot.processed,
        total=snapshot.total,
        data=[video.to_record() for video in snapshot.videos],
    )


@router.get("/status", tags=["system"], operation_id="collection_status")
def collection_status(session: Annotated[SortSession, Depends(get_session)]) -> StatusResponse:
    snapshot = session.snapshot()
    return StatusResponse(
        status=snapshot.status,
        processed=snapshot.processed,
        total=snapshot.total,
        collected=len(snapshot.videos),
        error=snapshot.error,
    )
