from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class Grid:
    """An in-memory copy of one worksheet's cells"""
    title: str
    cells: List[List[Any]] = field(default_factory=list)
    hidden: bool = False

    @property
    def row_count(self) -> int:
        return len(self.cells)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.cells), default=0)

    def cell(self, row: int, column: int) -> Any:
        """Value at (row, column), or None outside the grid"""
        if row < 0 or column < 0 or row >= len(self.cells):
            return None
        values = self.cells[row]
        if column >= len(values):
            return None
        return values[column]
