import logging
from datetime import datetime, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path

from excel_analytics.database.store import DocumentStore, get_store
from excel_analytics.models.user import User
from excel_analytics.routers.auth import require_admin
from excel_analytics.schemas.requests import UserStatusUpdate
from excel_analytics.schemas.responses import AdminStats, FileSummary, MessageResponse, UserOut
from excel_analytics.services.excel_service import ExcelService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

RECENT_FILES_DAYS = 7


@router.get("/users", response_model=List[UserOut])
async def list_users(admin: User = Depends(require_admin), store: DocumentStore = Depends(get_store)):
    """All users, newest first"""
    return [user.public() for user in store.list_users()]


@router.put("/users/{user_id}", response_model=UserOut)
async def update_user_status(
    update: UserStatusUpdate,
    user_id: str = Path(...),
    admin: User = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    """Activate or deactivate a user"""
    user = store.update_user(user_id, {"isActive": update.isActive})
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info(f"Admin {admin.id} set isActive={update.isActive} for user {user_id}")
    return user.public()


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str = Path(...),
    admin: User = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    """Delete a user together with all of their uploads and raw files"""
    if store.get_user_by_id(user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    for document in store.get_files_by_user(user_id):
        ExcelService.remove_raw_file(document)
    removed = store.delete_files_by_user(user_id)
    store.delete_user(user_id)
    logger.info(f"Admin {admin.id} deleted user {user_id} and {removed} file(s)")
    return {"message": "User deleted successfully"}


@router.get("/files", response_model=List[FileSummary])
async def list_files(admin: User = Depends(require_admin), store: DocumentStore = Depends(get_store)):
    """All uploads, newest first, with the owner's name and email"""
    owners = {user.id: {"name": user.name, "email": user.email} for user in store.list_users()}
    return [
        {
            "id": doc.id,
            "filename": doc.filename,
            "originalName": doc.originalName,
            "userId": doc.userId,
            "user": owners.get(doc.userId),
            "createdAt": doc.createdAt,
            "rowCount": doc.rowCount,
        }
        for doc in store.get_all_files()
    ]


@router.delete("/files/{file_id}", response_model=MessageResponse)
async def delete_file(
    file_id: str = Path(...),
    admin: User = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    """Delete an upload and its raw file"""
    document = store.get_file(file_id)
    if document is None or not store.delete_file(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    ExcelService.remove_raw_file(document)
    logger.info(f"Admin {admin.id} deleted file {file_id}")
    return {"message": "File deleted successfully"}


@router.get("/stats", response_model=AdminStats)
async def stats(admin: User = Depends(require_admin), store: DocumentStore = Depends(get_store)):
    """User and upload counters; recentFiles covers the last 7 days"""
    since = (datetime.now(timezone.utc) - timedelta(days=RECENT_FILES_DAYS)).isoformat()
    return {
        "totalUsers": store.count_users(),
        "totalFiles": store.count_files(),
        "activeUsers": store.count_users(isActive=True),
        "adminUsers": store.count_users(isAdmin=True),
        "recentFiles": store.count_files(since=since),
    }
