from dataclasses import dataclass
from typing import Dict, Any, List, Optional
from pydantic import BaseModel


class ExcelRecord(BaseModel):
    """One retained data row: 1-based dense index plus header-keyed values"""
    row: int
    values: Dict[str, Any]


class NormalizedPayload(BaseModel):
    """The {columns, data, rowCount} contract shared by upload and insight endpoints"""
    columns: List[str]
    data: List[ExcelRecord]
    rowCount: int


class ExcelFileDocument(BaseModel):
    """An upload as persisted in the document store"""
    id: Optional[str] = None
    filename: str
    originalName: str
    userId: Optional[str] = None
    fileRef: Optional[str] = None
    columns: List[str] = []
    data: List[ExcelRecord] = []
    rowCount: int = 0
    createdAt: Optional[str] = None


@dataclass(frozen=True)
class UploadedFile:
    """Upload body as handed over by the request layer"""
    filename: Optional[str]
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)
