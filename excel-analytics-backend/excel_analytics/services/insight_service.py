import logging
import math
import statistics
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from excel_analytics.models.excel_data import ExcelRecord, NormalizedPayload
from excel_analytics.models.insight import ColumnStats, InsightReport, INSIGHT_CONFIDENCE

logger = logging.getLogger(__name__)

OUTLIER_SIGMAS = 2


def parse_number(value: Any) -> Optional[float]:
    """Return the value as a finite float, or None when it is not numeric"""
    # bool is an int subclass but never counts as a number here
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def classify_columns(columns: List[str], records: List[ExcelRecord]) -> Tuple[List[str], List[str]]:
    """
    Split columns into (numeric, categorical)

    A column is numeric as soon as one record holds a parseable number for
    it, otherwise categorical. Column order is preserved in both lists.
    """
    numeric, categorical = [], []
    for column in columns:
        if any(parse_number(record.values.get(column)) is not None for record in records):
            numeric.append(column)
        else:
            categorical.append(column)
    return numeric, categorical


def column_stats(column: str, records: List[ExcelRecord]) -> ColumnStats:
    """
    Mean, population std and 2-sigma outlier count over the parseable values

    A value counts as an outlier when |v - mean| >= 2 * std. The boundary is
    inclusive rather than a strict ">": with five values the largest possible
    deviation is exactly 2 * std, so a lone spike such as
    [10, 10, 10, 10, 1000] would otherwise never be flagged.
    Constant columns (std == 0) report no outliers.
    """
    values = [n for n in (parse_number(r.values.get(column)) for r in records) if n is not None]
    if not values:
        return ColumnStats(column=column, count=0)

    mean = statistics.fmean(values)
    std = statistics.pstdev(values, mean)
    outliers = 0
    if std > 0:
        limit = OUTLIER_SIGMAS * std
        outliers = sum(1 for v in values if abs(v - mean) >= limit)
    return ColumnStats(column=column, count=len(values), mean=mean, std=std, outliers=outliers)


def summarize(payload: NormalizedPayload, now: Optional[datetime] = None) -> InsightReport:
    """
    Build the insight report for a normalized payload

    Args:
        payload: columns, records and row count as returned by the upload endpoint
        now: timestamp to stamp the report with (defaults to current UTC time)

    Returns:
        InsightReport with templated patterns, recommendations, chart
        suggestions and anomaly lines
    """
    columns = payload.columns
    row_count = payload.rowCount
    numeric, categorical = classify_columns(columns, payload.data)

    patterns = []
    if numeric:
        patterns.append(f"Found {len(numeric)} numeric columns suitable for quantitative analysis")
    if categorical:
        patterns.append(f"Identified {len(categorical)} categorical columns for grouping analysis")
    patterns.append(f"Dataset contains {row_count} data points for statistical analysis")

    recommendations = []
    if len(numeric) >= 2:
        recommendations.append(
            f"Consider creating correlation analysis between {' and '.join(numeric[:2])}"
        )
    if categorical and numeric:
        recommendations.append(
            f"Create grouped analysis using {categorical[0]} as categories and {numeric[0]} as values"
        )
    recommendations.append("Use time series analysis if date/time columns are present")
    recommendations.append("Consider outlier detection for better data quality")

    chart_suggestions = []
    if len(numeric) >= 2:
        chart_suggestions.append(f"Scatter plot: {numeric[0]} vs {numeric[1]}")
    if categorical and numeric:
        chart_suggestions.append(f"Bar chart: {categorical[0]} categories with {numeric[0]} values")
    if numeric:
        chart_suggestions.append(f"Histogram: Distribution of {numeric[0]}")
    chart_suggestions.append("Pie chart: Distribution of categorical data")

    anomalies = []
    for column in numeric:
        stats = column_stats(column, payload.data)
        if stats.outliers > 0:
            anomalies.append(
                f"Potential outliers detected in {column} column ({stats.outliers} values)"
            )

    summary = (
        f"This dataset contains {row_count} records with {len(columns)} columns. "
        f"The data includes {len(numeric)} quantitative variables and {len(categorical)} categorical variables. "
        "Recommended analysis includes correlation studies, distribution analysis, and pattern recognition."
    )

    generated_at = (now or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z")
    logger.info(
        f"Generated insights: {len(numeric)} numeric, {len(categorical)} categorical, "
        f"{len(anomalies)} anomalous columns"
    )
    return InsightReport(
        patterns=patterns,
        recommendations=recommendations,
        chartSuggestions=chart_suggestions,
        anomalies=anomalies,
        summary=summary,
        confidence=INSIGHT_CONFIDENCE,
        generatedAt=generated_at,
    )
