from typing import Dict, List, Optional

from models.fields import COLUMN_HEADERS
from models.grid import Grid
from models.metrics import log_missing_column
from models.utils import is_empty


def load_column_map(grid: Grid, row: int, op_name: str = '',
                    diagnostics: Optional[List[str]] = None) -> Dict[str, int]:
    """
    Map each member field to the first column in `row` whose trimmed text
    equals the field's header. Fields without a matching header are left
    out of the map and reported as a diagnostic.
    """
    column_map = {}
    for field_name, header in COLUMN_HEADERS.items():
        column = find_header_column(grid, row, header)
        if column is None:
            message = log_missing_column(op_name or grid.title, field_name)
            if diagnostics is not None:
                diagnostics.append(message)
            continue
        column_map[field_name] = column
    return column_map


def find_header_column(grid: Grid, row: int, header: str) -> Optional[int]:
    """Zero-based index of the first cell in `row` matching `header`"""
    for column in range(grid.column_count):
        value = grid.cell(row, column)
        if not is_empty(value) and str(value).strip() == header:
            return column
    return None
