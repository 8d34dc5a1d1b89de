from dataclasses import dataclass, replace
from typing import Optional, Tuple

from models.fields import CONFIG_MARKER, CONFIG_COUNT_BOLTERS, CONFIG_COUNT_DEATHS
from models.grid import Grid
from models.utils import cell_text, is_empty, parse_bool


@dataclass(frozen=True)
class OpConfig:
    """Which result categories count towards streaks"""
    count_bolters: bool = True
    count_deaths: bool = True

    def to_dict(self):
        return {'count_bolters': self.count_bolters, 'count_deaths': self.count_deaths}


DEFAULT_CONFIG = OpConfig()


def find_config_anchor(grid: Grid) -> Optional[Tuple[int, int]]:
    """(row, column) of the first 'Config' cell, scanning row by row"""
    for row in range(grid.row_count):
        for column in range(grid.column_count):
            value = grid.cell(row, column)
            if not is_empty(value) and cell_text(value).lower() == CONFIG_MARKER:
                return row, column
    return None


def get_op_config(grid: Grid) -> OpConfig:
    """
    Read the sheet's config block. Every row below the 'Config' cell is read,
    down to the end of the grid: a key in the anchor column sets the matching
    flag from the cell to its right.
    """
    anchor = find_config_anchor(grid)
    if anchor is None:
        return DEFAULT_CONFIG

    config = DEFAULT_CONFIG
    config_row, config_column = anchor
    for row in range(config_row + 1, grid.row_count):
        value = grid.cell(row, config_column)
        if is_empty(value):
            continue
        key = cell_text(value).lower()
        if key == CONFIG_COUNT_BOLTERS:
            config = replace(config, count_bolters=parse_bool(grid.cell(row, config_column + 1)))
        elif key == CONFIG_COUNT_DEATHS:
            config = replace(config, count_deaths=parse_bool(grid.cell(row, config_column + 1)))
    return config
