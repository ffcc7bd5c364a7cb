from typing import List, Optional
from pydantic import BaseModel

INSIGHT_CONFIDENCE = 0.85


class ColumnStats(BaseModel):
    """Descriptive statistics of one numeric column"""
    column: str
    count: int
    mean: Optional[float] = None
    std: Optional[float] = None
    outliers: int = 0


class InsightReport(BaseModel):
    """Templated summary of a normalized payload"""
    patterns: List[str]
    recommendations: List[str]
    chartSuggestions: List[str]
    anomalies: List[str]
    summary: str
    confidence: float = INSIGHT_CONFIDENCE
    generatedAt: str
