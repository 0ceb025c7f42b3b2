"""Inventory Export API router: request, track, download exports."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from fastapi.responses import RedirectResponse
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.database.session import get_db
from inventra.exceptions import NotFoundException, UnauthorizedException
from inventra.modules.auth.auth import AuthenticatedUser, authenticate_token, get_current_user
from inventra.modules.export.channel import CeleryExportTaskChannel
from inventra.modules.export.constants import EXPORT_ACCEPTED_MESSAGE
from inventra.modules.export.job_store import SqlAlchemyExportJobStore
from inventra.modules.export.notifier import StatusSubscription
from inventra.modules.export.schemas import (
    ExportAcceptedResponse,
    ExportCreateRequest,
    ExportJobResponse,
    ExportStatusUpdate,
)
from inventra.modules.export.service import ExportService
from inventra.schemas.responses import error_responses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory/exports", tags=["exports"])


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_export_service(db: AsyncSession = Depends(get_db)) -> ExportService:
    return ExportService(
        store=SqlAlchemyExportJobStore(db),
        channel=CeleryExportTaskChannel(),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=ExportAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses=error_responses(401, 422, 503),
)
async def request_export(
    body: ExportCreateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    svc: ExportService = Depends(get_export_service),
):
    """Request an asynchronous export of a whole inventory category.

    Returns as soon as the job is recorded and queued; poll the status
    endpoint or listen on the events socket for the outcome.
    """
    job_id = await svc.initiate_export(
        owner_id=user.id,
        category=body.category,
        export_format=body.export_format,
    )
    return ExportAcceptedResponse(job_id=job_id, message=EXPORT_ACCEPTED_MESSAGE)


@router.get("/jobs", response_model=list[ExportJobResponse], responses=error_responses(401))
async def list_export_jobs(
    user: AuthenticatedUser = Depends(get_current_user),
    svc: ExportService = Depends(get_export_service),
):
    """All export jobs of the authenticated user, newest first."""
    jobs = await svc.list_jobs_for_owner(user.id)
    return [ExportJobResponse.model_validate(job) for job in jobs]


@router.get(
    "/{job_id}", response_model=ExportJobResponse, responses=error_responses(401, 404)
)
async def get_export_status(
    job_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    svc: ExportService = Depends(get_export_service),
):
    job = await svc.get_status(job_id, owner_id=user.id)
    return ExportJobResponse.model_validate(job)


@router.get(
    "/{job_id}/download",
    status_code=status.HTTP_302_FOUND,
    responses=error_responses(401, 404),
)
async def download_export(
    job_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    svc: ExportService = Depends(get_export_service),
):
    """Redirect to the artifact of a completed export."""
    file_url = await svc.get_download_location(job_id, owner_id=user.id)
    return RedirectResponse(url=file_url, status_code=status.HTTP_302_FOUND)


# ---------------------------------------------------------------------------
# Status events
# ---------------------------------------------------------------------------


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _relay_updates(websocket: WebSocket, subscription: StatusSubscription) -> None:
    async for update in subscription.updates():
        await websocket.send_json(update.model_dump(mode="json", by_alias=True))


@router.websocket("/{job_id}/events")
async def export_status_events(
    websocket: WebSocket,
    job_id: uuid.UUID,
    token: str = Query(...),
    db: AsyncSession = Depends(get_db),
    svc: ExportService = Depends(get_export_service),
):
    """Push status updates for one job until it reaches a terminal state.

    The current status is sent first; Redis pub/sub messages follow. The
    request session is the one ``svc`` reads through and is released right
    after that read. Without Redis the socket still sends the current
    status and then closes.
    """
    try:
        user = authenticate_token(token)
    except UnauthorizedException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    try:
        async with contextlib.AsyncExitStack() as stack:
            try:
                subscription = await stack.enter_async_context(StatusSubscription(job_id))
            except (RedisError, OSError):
                logger.warning(
                    "Status relay unavailable for export job %s", job_id, exc_info=True
                )
                subscription = None

            try:
                job = await svc.get_status(job_id, owner_id=user.id)
            except NotFoundException:
                await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return
            finally:
                await db.close()

            current = ExportStatusUpdate.for_job(job)
            await websocket.send_json(current.model_dump(mode="json", by_alias=True))
            if current.status.is_terminal or subscription is None:
                await websocket.close()
                return

            relay = asyncio.create_task(_relay_updates(websocket, subscription))
            disconnect = asyncio.create_task(_wait_for_disconnect(websocket))
            done, pending = await asyncio.wait(
                {relay, disconnect}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            if relay in done:
                relay.result()
                await websocket.close()
    except WebSocketDisconnect:
        logger.info("Status socket for export job %s disconnected", job_id)
