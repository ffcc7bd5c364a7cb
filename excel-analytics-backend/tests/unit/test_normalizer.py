from __future__ import annotations
import pytest

from excel_analytics.errors import EmptyFileError
from excel_analytics.models.workbook import Sheet, Workbook
from excel_analytics.services.normalizer import header_name, is_empty_row, normalize


def _wb(*sheets: list[list[object]]) -> Workbook:
    return Workbook(sheets=[Sheet(name=f"Sheet{i + 1}", rows=rows) for i, rows in enumerate(sheets)])


def test_people_sheet_with_gap_row():
    payload = normalize(_wb([["Name", "Age"], ["Alice", 30], ["Bob", 25], [], ["Carol", 40]]))
    assert payload.columns == ["Name", "Age"]
    assert payload.rowCount == 3
    assert [r.row for r in payload.data] == [1, 2, 3]
    assert [r.values["Name"] for r in payload.data] == ["Alice", "Bob", "Carol"]
    assert payload.data[2].values == {"Name": "Carol", "Age": 40}


def test_every_record_has_one_value_per_column():
    payload = normalize(_wb([["a", "b", "c", "d"], ["x"], ["x", None, "z"], [1, 2, 3, 4, 5]]))
    for record in payload.data:
        assert list(record.values.keys()) == ["a", "b", "c", "d"]
        assert all(v is not None for v in record.values.values())
    assert payload.data[0].values == {"a": "x", "b": "", "c": "", "d": ""}
    assert payload.data[1].values == {"a": "x", "b": "", "c": "z", "d": ""}
    # cells past the header width are ignored
    assert payload.data[2].values == {"a": 1, "b": 2, "c": 3, "d": 4}


def test_row_indices_are_dense_over_retained_rows():
    rows = [["h"], [], ["a"], [None], [""], ["b"], [], [], ["c"]]
    payload = normalize(_wb(rows))
    assert payload.rowCount == len(payload.data) == 3
    assert [r.row for r in payload.data] == [1, 2, 3]
    assert [r.values["h"] for r in payload.data] == ["a", "b", "c"]


def test_header_plus_three_rows_with_middle_empty():
    payload = normalize(_wb([["k", "v"], ["a", 1], [None, ""], ["c", 3]]))
    assert payload.rowCount == 2


def test_falsy_cells_are_preserved():
    payload = normalize(_wb([["n", "flag", "s"], [0, False, "0"]]))
    assert payload.data[0].values == {"n": 0, "flag": False, "s": "0"}


def test_numeric_strings_are_not_coerced():
    payload = normalize(_wb([["amount"], ["12.50"], [7]]))
    assert payload.data[0].values["amount"] == "12.50"
    assert payload.data[1].values["amount"] == 7


def test_header_cells_are_stringified():
    payload = normalize(_wb([["Name", None, 2023, 1.5, True], ["x", "y", "z", "w", "v"]]))
    assert payload.columns == ["Name", "", "2023", "1.5", "True"]
    assert payload.data[0].values[""] == "y"


def test_duplicate_headers_last_one_wins():
    payload = normalize(_wb([["id", "id", "name"], [1, 2, "n"]]))
    assert payload.columns == ["id", "id", "name"]
    assert payload.data[0].values == {"id": 2, "name": "n"}


def test_only_first_sheet_is_used():
    payload = normalize(_wb([["first"], ["a"]], [["second"], ["b"], ["c"]]))
    assert payload.columns == ["first"]
    assert payload.rowCount == 1


@pytest.mark.parametrize("rows", [
    [],
    [["Name", "Age"]],
    [["Name", "Age"], [], [None, None], ["", ""]],
])
def test_empty_sheets_raise(rows):
    with pytest.raises(EmptyFileError):
        normalize(_wb(rows))


def test_workbook_without_sheets_raises():
    with pytest.raises(EmptyFileError):
        normalize(Workbook(sheets=[]))


def test_helpers():
    assert header_name(None) == ""
    assert header_name(3.0) == "3"
    assert is_empty_row([])
    assert is_empty_row([None, ""])
    assert not is_empty_row([None, 0])
