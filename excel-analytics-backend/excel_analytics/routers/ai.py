import logging

from fastapi import APIRouter, Depends

from excel_analytics.errors import ValidationError
from excel_analytics.models.excel_data import NormalizedPayload
from excel_analytics.models.insight import InsightReport
from excel_analytics.models.user import User
from excel_analytics.routers.auth import get_current_user
from excel_analytics.schemas.requests import AnalyzeRequest
from excel_analytics.services.insight_service import summarize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI Insights"])


def payload_from_request(request: AnalyzeRequest) -> NormalizedPayload:
    if not request.columns or request.data is None or not request.rowCount:
        raise ValidationError("Invalid data provided")
    return NormalizedPayload(columns=request.columns, data=request.data, rowCount=request.rowCount)


@router.post("/analyze-simple", response_model=InsightReport)
def analyze_simple(request: AnalyzeRequest):
    """
    Generate insights for an uploaded dataset (no authentication required)
    """
    return summarize(payload_from_request(request))


@router.post("/analyze", response_model=InsightReport)
def analyze(request: AnalyzeRequest, current_user: User = Depends(get_current_user)):
    """
    Generate insights for an uploaded dataset on behalf of the current user
    """
    logger.info(f"Insight request from user {current_user.id}")
    return summarize(payload_from_request(request))
