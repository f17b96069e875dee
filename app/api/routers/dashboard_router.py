"""
app/api/routers/dashboard_router.py

Dashboard HTTP endpoints.

Loading a file or the demo returns the complete heuristic dashboard
(KPIs and charts) immediately. AI enrichment, chat and forecasting are
separate calls so they never hold up the initial response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status

from app.api.dependencies import get_dataset_upload
from app.schemas.dashboard import ChatRequest, ChatResponse, DashboardResponse
from app.services.dashboard_service import (
    DashboardService,
    DashboardSession,
    DashboardSessionNotFoundError,
    get_dashboard_service,
)
from inference.errors import DatasetFormatError, UploadTooLargeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboards", tags=["dashboard"])


def _response(session: DashboardSession, include_rows: bool = False) -> DashboardResponse:
    return DashboardResponse(**session.to_dict(include_rows=include_rows))


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Dashboard session '{session_id}' not found.",
    )


@router.post("", response_model=DashboardResponse)
async def upload_dataset(
    file: UploadFile = Depends(get_dataset_upload),
    session_id: str | None = Query(default=None, description="Replace the dataset of an existing session"),
    include_rows: bool = Query(default=False),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """
    Parse and analyze one CSV or JSON upload.
    """

    try:
        content = await file.read()
        session = service.load_upload(file.filename or "dataset.csv", content, session_id=session_id)
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except DatasetFormatError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    finally:
        await file.close()

    return _response(session, include_rows=include_rows)


@router.post("/demo", response_model=DashboardResponse)
def load_demo(
    include_rows: bool = Query(default=False),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    return _response(service.load_demo(), include_rows=include_rows)


@router.get("/{session_id}", response_model=DashboardResponse)
def get_dashboard(
    session_id: str,
    include_rows: bool = Query(default=False),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    try:
        return _response(service.get_session(session_id), include_rows=include_rows)
    except DashboardSessionNotFoundError as exc:
        raise _not_found(session_id) from exc


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_dashboard(
    session_id: str,
    service: DashboardService = Depends(get_dashboard_service),
) -> None:
    service.close_session(session_id)


@router.post("/{session_id}/enrich", response_model=DashboardResponse)
async def enrich_dashboard(
    session_id: str,
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """
    Request AI insights and the data story; failures leave them empty.
    """

    try:
        session = await service.enrich(session_id)
    except DashboardSessionNotFoundError as exc:
        raise _not_found(session_id) from exc
    return _response(session)


@router.post("/{session_id}/chat", response_model=ChatResponse)
async def chat(
    session_id: str,
    body: ChatRequest,
    service: DashboardService = Depends(get_dashboard_service),
) -> ChatResponse:
    query = body.query.strip()
    if not query:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Query must not be blank.",
        )
    try:
        answer = await service.ask(session_id, query)
    except DashboardSessionNotFoundError as exc:
        raise _not_found(session_id) from exc
    return ChatResponse(session_id=session_id, query=query, answer=answer)


@router.post("/{session_id}/forecast", response_model=DashboardResponse)
async def run_forecast(
    session_id: str,
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    """
    Run a forecast; a failure is reported in ``forecast.error``, not as a 4xx/5xx.
    """

    try:
        session = await service.run_forecast(session_id)
    except DashboardSessionNotFoundError as exc:
        raise _not_found(session_id) from exc
    return _response(session)


@router.delete("/{session_id}/forecast", response_model=DashboardResponse)
def clear_forecast(
    session_id: str,
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    try:
        session = service.get_session(session_id)
    except DashboardSessionNotFoundError as exc:
        raise _not_found(session_id) from exc
    session.forecast.clear_forecast()
    return _response(session)


@router.delete("/{session_id}/forecast/error", response_model=DashboardResponse)
def dismiss_forecast_error(
    session_id: str,
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardResponse:
    try:
        session = service.get_session(session_id)
    except DashboardSessionNotFoundError as exc:
        raise _not_found(session_id) from exc
    session.forecast.dismiss_error()
    return _response(session)


@router.post("/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset(service: DashboardService = Depends(get_dashboard_service)) -> None:
    """
    Close every session and clear cached AI results.
    """

    service.reset()
    logger.info("Dashboard state reset via API")
