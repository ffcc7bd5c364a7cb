from typing import List, Optional, Union
from pydantic import BaseModel

# None is an empty cell
CellValue = Optional[Union[bool, int, float, str]]


class Sheet(BaseModel):
    """A decoded worksheet: row-major grid with trailing empty cells trimmed"""
    name: str
    rows: List[List[CellValue]] = []


class Workbook(BaseModel):
    """Decoded spreadsheet, sheets in workbook order"""
    sheets: List[Sheet] = []

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]

    def first_sheet(self) -> Optional[Sheet]:
        return self.sheets[0] if self.sheets else None
