from pydantic import BaseModel
from typing import List, Dict, Any, Optional

from excel_analytics.models.excel_data import ExcelRecord

class UploadResponse(BaseModel):
    """Response for the upload endpoints"""
    message: str
    columns: List[str]
    data: List[ExcelRecord]
    rowCount: int
    id: Optional[str] = None

class HistoryItem(BaseModel):
    """One previous upload of the current user"""
    id: str
    filename: str
    originalName: str
    createdAt: Optional[str] = None
    columns: List[str]
    data: List[ExcelRecord]
    rowCount: int

class FileSummary(BaseModel):
    """Upload as listed in the admin panel"""
    id: str
    filename: str
    originalName: str
    userId: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    createdAt: Optional[str] = None
    rowCount: int

class UserOut(BaseModel):
    """User without the password hash"""
    id: str
    name: str
    email: str
    isAdmin: bool
    isActive: bool
    createdAt: Optional[str] = None

class AdminStats(BaseModel):
    totalUsers: int
    totalFiles: int
    activeUsers: int
    adminUsers: int
    recentFiles: int

class MessageResponse(BaseModel):
    message: str

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: Dict[str, Any]
