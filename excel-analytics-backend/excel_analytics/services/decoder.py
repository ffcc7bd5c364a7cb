import io
import logging
import math
from datetime import date, datetime, time
from typing import Any, List

import pandas as pd

from excel_analytics.errors import FormatError, ValidationError
from excel_analytics.models.workbook import CellValue, Sheet, Workbook

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

WORKBOOK_EXTENSIONS = (".xlsx", ".xls")


def normalize_extension(extension: str) -> str:
    ext = (extension or "").strip().lower()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def sniff_engine(content: bytes) -> str:
    """
    Pick the pandas engine from the container's magic bytes

    The declared extension is not trusted: an .xls that is really OOXML
    (common when files are renamed) is still read with openpyxl.
    """
    if content.startswith(ZIP_MAGIC):
        return "openpyxl"
    if content.startswith(OLE2_MAGIC):
        return "xlrd"
    raise FormatError("Invalid Excel file")


def to_cell(value: Any) -> CellValue:
    """Convert a pandas/openpyxl cell into a plain JSON-friendly value"""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # inf cannot travel in JSON
        return value if math.isfinite(value) else str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    # numpy scalars expose .item()
    if hasattr(value, "item"):
        return to_cell(value.item())
    return str(value)


def frame_to_rows(df: pd.DataFrame) -> List[List[CellValue]]:
    """Row-major grid with trailing empty cells trimmed from every row

    Blank strings are how the readers report empty cells once NA parsing is
    off, so they become None like any other empty cell.
    """
    rows = []
    for raw in df.itertuples(index=False, name=None):
        cells = [None if isinstance(v, str) and v == "" else to_cell(v) for v in raw]
        while cells and cells[-1] is None:
            cells.pop()
        rows.append(cells)
    return rows


def decode_workbook(content: bytes) -> Workbook:
    """Decode .xlsx/.xls bytes, every sheet in workbook order"""
    if not content:
        raise FormatError("Invalid Excel file")

    engine = sniff_engine(content)
    try:
        xls = pd.ExcelFile(io.BytesIO(content), engine=engine)
        sheets = []
        for name in xls.sheet_names:
            # text such as "NA" or "null" is data, not a missing value
            df = xls.parse(name, header=None, dtype=object, keep_default_na=False, na_values=[])
            sheets.append(Sheet(name=str(name), rows=frame_to_rows(df)))
    except Exception as e:
        logger.error(f"Excel parsing error ({engine}): {e}")
        raise FormatError("Invalid Excel file") from e

    logger.info(f"Decoded workbook with {len(sheets)} sheet(s) using {engine}")
    return Workbook(sheets=sheets)


def decode_csv(content: bytes) -> Workbook:
    """
    Decode CSV text into a single-sheet workbook

    Cells are kept as strings; empty cells become None. Only reachable when
    CSV uploads are enabled in the configuration.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FormatError("Invalid CSV file: not UTF-8 text") from e

    if not text.strip():
        return Workbook(sheets=[Sheet(name="Sheet1", rows=[])])

    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            na_values=[],
            skip_blank_lines=False,
        )
    except Exception as e:
        logger.error(f"CSV parsing error: {e}")
        raise FormatError("Invalid CSV file") from e

    return Workbook(sheets=[Sheet(name="Sheet1", rows=frame_to_rows(df))])


def decode(content: bytes, extension: str) -> Workbook:
    """
    Decode raw spreadsheet bytes into a Workbook

    Args:
        content: Raw file bytes
        extension: The file's claimed extension (".xlsx", ".xls" or ".csv")

    Returns:
        Workbook with every sheet decoded. Callers only consume the first
        sheet; the rest are decoded but ignored downstream.

    Raises:
        FormatError: the container cannot be parsed (corrupt archive, wrong
            magic bytes, undecodable text)
        ValidationError: the extension has no decoder
    """
    ext = normalize_extension(extension)
    if ext in WORKBOOK_EXTENSIONS:
        return decode_workbook(content)
    if ext == ".csv":
        return decode_csv(content)
    raise ValidationError(f"Unsupported file type: {ext or 'unknown'}")
