"""
HTTP routes for the link storage API.
"""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from linkstore.codec import decode_body
from linkstore.coordinator import StorageCoordinator
from linkstore.dependencies import get_coordinator
from linkstore.errors import InvalidPayload, RecordNotFound
from linkstore.ids import generate_id
from linkstore.schemas import CreateLinkResponse, ErrorResponse, PingResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


@router.post(
    "/links",
    response_model=CreateLinkResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_link(
    request: Request,
    coordinator: StorageCoordinator = Depends(get_coordinator),
):
    """
    Store the request body under a new id. Compressed bodies are unpacked
    first; the document itself is opaque.
    """
    request_id = generate_id()
    logger.info("[%s] POST /links started", request_id)
    try:
        raw = await request.body()
        try:
            document = decode_body(raw)
        except InvalidPayload as exc:
            logger.warning("[%s] Rejected body: %s", request_id, exc)
            return _error(400, str(exc))

        link_id = await run_in_threadpool(coordinator.store, document)
    except Exception:
        logger.exception("[%s] Unexpected error", request_id)
        return _error(500, "Internal server error during save")

    logger.info("[%s] Successfully saved as %s", request_id, link_id)
    return CreateLinkResponse(id=link_id)


@router.get(
    "/links/{link_id}",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def get_link(
    link_id: str,
    coordinator: StorageCoordinator = Depends(get_coordinator),
):
    try:
        record = coordinator.require(link_id)
        # Return the document verbatim, including null or empty documents.
        return JSONResponse(content=record.payload)
    except RecordNotFound:
        return _error(404, "Not found")
    except Exception:
        logger.exception("Unexpected error reading %s", link_id)
        return _error(500, "Server error")


@router.get("/ping", response_model=PingResponse)
def ping():
    return PingResponse(timestamp=int(time.time() * 1000))
