import logging
from typing import List

from excel_analytics.errors import EmptyFileError
from excel_analytics.models.excel_data import ExcelRecord, NormalizedPayload
from excel_analytics.models.workbook import CellValue, Workbook

logger = logging.getLogger(__name__)


def header_name(cell: CellValue) -> str:
    """Render a header cell as a column name; empty cells give ''"""
    if cell is None:
        return ""
    if isinstance(cell, float) and cell.is_integer():
        return str(int(cell))
    return str(cell)


def is_empty_row(row: List[CellValue]) -> bool:
    return all(cell is None or cell == "" for cell in row)


def normalize(workbook: Workbook) -> NormalizedPayload:
    """
    Turn the first sheet of a workbook into the normalized payload

    Row 0 is the header. Every later non-empty row becomes a record whose
    values hold exactly one entry per column; missing cells are filled with
    "". Empty rows are dropped and do not consume a row index. When two
    headers share a name the later column wins.

    Raises:
        EmptyFileError: no sheet, no rows, or no data rows after the header
    """
    sheet = workbook.first_sheet()
    if sheet is None or not sheet.rows:
        raise EmptyFileError("Excel file is empty")

    columns = [header_name(cell) for cell in sheet.rows[0]]

    records = []
    for raw in sheet.rows[1:]:
        if is_empty_row(raw):
            continue
        values = {}
        for i, column in enumerate(columns):
            cell = raw[i] if i < len(raw) else None
            values[column] = "" if cell is None else cell
        records.append(ExcelRecord(row=len(records) + 1, values=values))

    if not records:
        raise EmptyFileError("Excel file has no data rows")

    logger.info(f"Normalized sheet '{sheet.name}': {len(columns)} columns, {len(records)} rows")
    return NormalizedPayload(columns=columns, data=records, rowCount=len(records))
