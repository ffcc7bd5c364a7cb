from pydantic import BaseModel
from typing import Optional, List

from excel_analytics.models.excel_data import ExcelRecord

class AnalyzeRequest(BaseModel):
    """
    Requisição de análise: o mesmo formato devolvido pelo upload
    """
    columns: Optional[List[str]] = None
    data: Optional[List[ExcelRecord]] = None
    rowCount: Optional[int] = None

class UserStatusUpdate(BaseModel):
    """
    Atualização de status de um usuário (admin)
    """
    isActive: bool
