import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from excel_analytics import config
from excel_analytics.database.store import DocumentStore, get_null_store, get_store
from excel_analytics.errors import AppError, ValidationError
from excel_analytics.models.excel_data import ExcelFileDocument, UploadedFile
from excel_analytics.models.user import User
from excel_analytics.routers.auth import get_current_user
from excel_analytics.schemas.responses import HistoryItem, UploadResponse
from excel_analytics.services.excel_service import ExcelService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["Excel Upload"])

executor = ThreadPoolExecutor()


async def read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    """
    Read the multipart body, refusing anything above MAX_UPLOAD_BYTES

    At most one byte past the limit is read, so oversized uploads never
    reach the decoder.
    """
    if file is None or not file.filename:
        return None
    content = await file.read(config.MAX_UPLOAD_BYTES + 1)
    if len(content) > config.MAX_UPLOAD_BYTES:
        logger.warning(f"Rejected upload {file.filename}: larger than {config.MAX_UPLOAD_BYTES} bytes")
        raise ValidationError(f"File too large (limit is {config.MAX_UPLOAD_BYTES} bytes)")
    return UploadedFile(filename=file.filename, content=content, content_type=file.content_type)


async def run_ingestion(upload: Optional[UploadedFile], store: DocumentStore, owner_id: Optional[str] = None) -> ExcelFileDocument:
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(executor, ExcelService.ingest, upload, store, owner_id)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error processing file: {e}")
        raise HTTPException(status_code=500, detail="Server error")


def upload_response(document: ExcelFileDocument) -> dict:
    return {
        "message": "File uploaded successfully",
        "id": document.id,
        "columns": document.columns,
        "data": document.data,
        "rowCount": document.rowCount,
    }


@router.post("", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_excel(
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """
    Upload an Excel file, parse it and store it in the user's history

    Args:
        file: The Excel file to upload (.xlsx or .xls)

    Returns:
        Normalized columns and rows of the first sheet
    """
    upload = await read_upload(file)
    document = await run_ingestion(upload, store, current_user.id)
    return upload_response(document)


@router.post("/simple", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_excel_simple(
    file: Optional[UploadFile] = File(None),
    store: DocumentStore = Depends(get_null_store),
):
    """
    Anonymous upload: parse and return the data without storing anything
    """
    upload = await read_upload(file)
    document = await run_ingestion(upload, store)
    return upload_response(document)


@router.get("/history", response_model=List[HistoryItem])
async def upload_history(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    """
    Previous uploads of the current user, newest first
    """
    return [doc.model_dump() for doc in store.get_files_by_user(current_user.id)]
