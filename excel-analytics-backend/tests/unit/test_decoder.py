from __future__ import annotations
import io
import math
import zipfile
from datetime import datetime

import numpy as np
import pytest
from openpyxl import Workbook as OpenpyxlWorkbook

from excel_analytics.errors import FormatError, ValidationError
from excel_analytics.services.decoder import decode, decode_csv, normalize_extension, sniff_engine, to_cell


def test_decode_xlsx_keeps_native_cell_types(xlsx_factory):
    content = xlsx_factory({"Sheet1": [["Name", "Age", "Member"], ["Alice", 30, True], ["Bob", 2.5, False]]})
    wb = decode(content, ".xlsx")
    assert wb.sheet_names == ["Sheet1"]
    rows = wb.sheets[0].rows
    assert rows[0] == ["Name", "Age", "Member"]
    assert rows[1] == ["Alice", 30, True]
    assert isinstance(rows[1][1], int)
    assert rows[2] == ["Bob", 2.5, False]


def test_decode_keeps_every_sheet_in_order(xlsx_factory):
    content = xlsx_factory({
        "First": [["a"], [1]],
        "Second": [["b"], [2]],
        "Third": [["c"], [3]],
    })
    wb = decode(content, "xlsx")
    assert wb.sheet_names == ["First", "Second", "Third"]
    assert wb.first_sheet().name == "First"
    assert wb.sheets[2].rows == [["c"], [3]]


def test_decode_trims_trailing_empty_cells_and_keeps_empty_rows(xlsx_factory):
    content = xlsx_factory({"S": [["h1", "h2", "h3"], ["x", None, None], [None, None, None], ["y", "z", None]]})
    rows = decode(content, ".xlsx").sheets[0].rows
    assert rows == [["h1", "h2", "h3"], ["x"], [], ["y", "z"]]


def test_decode_keeps_na_like_text(xlsx_factory):
    content = xlsx_factory({"S": [["Name", "NA"], ["N/A", "null"], ["Bob", "None"], ["#N/A", "nan"]]})
    rows = decode(content, ".xlsx").sheets[0].rows
    assert rows == [["Name", "NA"], ["N/A", "null"], ["Bob", "None"], ["#N/A", "nan"]]


def test_decode_csv_keeps_na_like_text():
    rows = decode_csv(b"a,NA\nnull,N/A\n").sheets[0].rows
    assert rows == [["a", "NA"], ["null", "N/A"]]


def test_decode_empty_sheet_is_not_a_format_error():
    buffer = io.BytesIO()
    OpenpyxlWorkbook().save(buffer)
    wb = decode(buffer.getvalue(), ".xlsx")
    assert len(wb.sheets) == 1
    assert wb.sheets[0].rows == []


def test_decode_rejects_non_workbook_bytes():
    with pytest.raises(FormatError):
        decode(b"this is definitely not a spreadsheet", ".xlsx")


def test_decode_rejects_empty_content():
    with pytest.raises(FormatError):
        decode(b"", ".xlsx")


def test_decode_rejects_zip_that_is_not_a_workbook():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("hello.txt", "not a workbook")
    with pytest.raises(FormatError):
        decode(buffer.getvalue(), ".xlsx")


def test_decode_rejects_truncated_xlsx(xlsx_factory):
    content = xlsx_factory({"S": [["a", "b"], [1, 2]]})
    with pytest.raises(FormatError):
        decode(content[: len(content) // 2], ".xlsx")


def test_decode_rejects_corrupt_xls():
    content = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64
    with pytest.raises(FormatError):
        decode(content, ".xls")


def test_decode_unknown_extension():
    with pytest.raises(ValidationError):
        decode(b"PK\x03\x04", ".ods")


def test_sniff_engine():
    assert sniff_engine(b"PK\x03\x04rest") == "openpyxl"
    assert sniff_engine(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1rest") == "xlrd"
    with pytest.raises(FormatError):
        sniff_engine(b"Name,Age\n")


def test_normalize_extension():
    assert normalize_extension("XLSX") == ".xlsx"
    assert normalize_extension(".Xls") == ".xls"
    assert normalize_extension("") == ""


def test_decode_csv_keeps_strings():
    content = "Name,Age\nAlice,30\n,\nBob,\n".encode("utf-8")
    wb = decode(content, ".csv")
    assert wb.sheets[0].rows == [["Name", "Age"], ["Alice", "30"], [], ["Bob"]]


def test_decode_csv_strips_bom_and_handles_blank_text():
    wb = decode_csv("\ufeffa,b\n1,2\n".encode("utf-8"))
    assert wb.sheets[0].rows[0] == ["a", "b"]
    assert decode_csv(b"   \n").sheets[0].rows == []


def test_decode_csv_rejects_binary():
    with pytest.raises(FormatError):
        decode_csv(b"\xff\xfe\x00\x81garbage")


def test_to_cell_conversions():
    assert to_cell(float("nan")) is None
    assert to_cell(None) is None
    assert to_cell(np.int64(7)) == 7 and isinstance(to_cell(np.int64(7)), int)
    assert to_cell(np.bool_(True)) is True
    assert to_cell(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05"
    assert to_cell(math.inf) == "inf"
    assert to_cell("text") == "text"
