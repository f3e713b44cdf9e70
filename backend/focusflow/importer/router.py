"""Import API routes."""

from fastapi import APIRouter, Depends, HTTPException, UploadFile

from focusflow.importer.errors import ImportFormatError, PersistenceFailedError
from focusflow.importer.schemas import ImportPreviewResponse, ImportReport
from focusflow.importer.service import ImportService

router = APIRouter(prefix="/api/import", tags=["import"])


def get_import_service() -> ImportService:
    """Dependency placeholder, overridden at startup."""
    raise RuntimeError("ImportService not configured")


@router.post("/preview")
async def preview_import(
    file: UploadFile,
    service: ImportService = Depends(get_import_service),
) -> ImportPreviewResponse:
    """Parse uploaded archive and return preview without creating anything."""
    content = await file.read()
    try:
        return await service.preview(content, file.filename or "unknown")
    except ImportFormatError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("")
async def import_archive(
    file: UploadFile,
    service: ImportService = Depends(get_import_service),
) -> ImportReport:
    """Import projects and tasks from uploaded archive."""
    content = await file.read()
    try:
        return await service.import_archive(content, file.filename or "unknown")
    except ImportFormatError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except PersistenceFailedError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
