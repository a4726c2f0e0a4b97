"""
File API endpoints.

Routes:
- POST /files - Upload (raw request body; Content-Type is stored)
- GET /files/general - List a user's general files
- GET /files/{id} - Get file metadata
- GET /files/{id}/content - Download file contents
- DELETE /files/{id} - Delete file (uploader only)
- GET /sessions/{id}/files - List a session's files
- DELETE /sessions/{id}/files - Delete every file of a session (staff)

Dependencies: tutordesk.application.services.file_service, tutordesk.models
System role: File management HTTP API
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from tutordesk.api.deps import get_current_actor, get_file_service
from tutordesk.api.routers.router_utils import first_snapshot, handle_service_errors
from tutordesk.application.services.file_service import FileService
from tutordesk.models.file import DeleteAllFilesResponse, FileRecord
from tutordesk.models.user import Actor

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])


@router.post("/files", response_model=FileRecord, status_code=status.HTTP_201_CREATED)
@handle_service_errors
async def upload_file(
    request: Request,
    file_name: str,
    session_id: str | None = None,
    owner_id: str | None = None,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> FileRecord:
    """
    Upload a file into a session, or into general files without session_id.

    Args:
        request: Raw body holds the file contents
        file_name: Original file name
        session_id: Target session
        owner_id: Partition owner (defaults to the caller)

    Raises:
        HTTPException(403): Upload not permitted (e.g. student on Closed session)
        HTTPException(404): Session not found
    """
    data = await request.body()
    content_type = request.headers.get("content-type")
    return await file_service.upload_file(
        actor,
        session_id,
        owner_id or actor.id,
        data,
        file_name,
        content_type=content_type,
    )


@router.get("/files/general", response_model=list[FileRecord])
@handle_service_errors
async def list_general_files(
    owner_id: str | None = None,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> list[FileRecord]:
    """List general (session-less) files, newest first."""
    return await first_snapshot(
        await file_service.list_general_files(actor, owner_id or actor.id)
    )


@router.get("/files/{file_id}", response_model=FileRecord)
@handle_service_errors
async def get_file(
    file_id: str,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> FileRecord:
    """Get file metadata."""
    return await file_service.get_file(actor, file_id)


@router.get("/files/{file_id}/content")
@handle_service_errors
async def download_file(
    file_id: str,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> Response:
    """Download file contents."""
    record, data = await file_service.read_file(actor, file_id)
    return Response(
        content=data,
        media_type=record.content_type,
        headers={"Content-Disposition": f'attachment; filename="{record.name}"'},
    )


@router.delete("/files/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_service_errors
async def delete_file(
    file_id: str,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> Response:
    """
    Delete a file.

    Raises:
        HTTPException(403): Caller did not upload the file
        HTTPException(404): File not found
    """
    record = await file_service.get_file(actor, file_id)
    await file_service.delete_file(actor, record)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sessions/{session_id}/files", response_model=list[FileRecord])
@handle_service_errors
async def list_session_files(
    session_id: str,
    owner_id: str | None = None,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> list[FileRecord]:
    """List a session's files, newest first."""
    return await first_snapshot(
        await file_service.list_files(actor, session_id, owner_id or actor.id)
    )


@router.delete("/sessions/{session_id}/files", response_model=DeleteAllFilesResponse)
@handle_service_errors
async def delete_all_files(
    session_id: str,
    owner_id: str,
    actor: Actor = Depends(get_current_actor),
    file_service: FileService = Depends(get_file_service),
) -> DeleteAllFilesResponse:
    """Delete every file of a session (staff only)."""
    deleted = await file_service.delete_all_files(actor, session_id, owner_id)
    return DeleteAllFilesResponse(deleted=deleted)
