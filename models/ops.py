"""
Op extraction from a worksheet grid.

A worksheet holds one or more ops stacked vertically:

    <timeslot>
    Name | Callsign | Type | Bolters | ...     <- header row, "Name" in column 0
    <member rows>
    <blank or totals row>
    <next timeslot>
    Name | ...

Each op gets its own column map since headers may move between ops, while
all ops on a sheet share the sheet's config block.
"""
from dataclasses import dataclass, field, fields as dataclass_fields
from typing import Any, Dict, List, Optional, Tuple

from models.columns import load_column_map
from models.config import OpConfig, get_op_config
from models.fields import DISPLAY_NAME, OP_HEADER_SENTINEL, UNIQUE_NAME
from models.grid import Grid
from models.metrics import log_ops_loaded
from models.utils import cell_text, is_empty, normalize_name

# Rows between an op's last member and the next op's header row
# (one blank/totals row plus the timeslot row)
HEADER_LOOKAHEAD = 2


@dataclass(frozen=True)
class OpMember:
    """One member row of an op. Missing columns stay None."""
    unique_name: Optional[str] = None
    display_name: Optional[str] = None
    callsign: Any = None
    type: Any = None
    bolters: Any = None
    wire: Any = None
    lso_grade: Any = None
    combat_deaths: Any = None
    promotions: Any = None
    remarks: Any = None

    def is_empty(self) -> bool:
        return not self.unique_name

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in dataclass_fields(self)}


@dataclass(frozen=True)
class Op:
    name: str
    timeslot: str
    config: OpConfig
    members: Tuple[OpMember, ...] = field(default_factory=tuple)

    def has_member(self, unique_name: str) -> bool:
        return self.get_member(unique_name) is not None

    def get_member(self, unique_name: str) -> Optional[OpMember]:
        for member in self.members:
            if member.unique_name == unique_name:
                return member
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'timeslot': self.timeslot,
            'config': self.config.to_dict(),
            'members': [member.to_dict() for member in self.members],
        }


def is_op_header(grid: Grid, row: int) -> bool:
    """True when the row starts an op's header"""
    return grid.cell(row, 0) == OP_HEADER_SENTINEL


def parse_member_row(grid: Grid, row: int, column_map: Dict[str, int]) -> OpMember:
    """Read the mapped cells of a row into an OpMember"""
    values = {key: grid.cell(row, column) for key, column in column_map.items()}

    raw_name = values.pop(UNIQUE_NAME, None)
    if not is_empty(raw_name):
        values[DISPLAY_NAME] = str(raw_name)
        values[UNIQUE_NAME] = normalize_name(raw_name)

    return OpMember(**values)


def load_members(grid: Grid, start_row: int, column_map: Dict[str, int]) -> List[OpMember]:
    """
    Parse rows after the header at `start_row` until the next op's header is
    HEADER_LOOKAHEAD rows ahead or the grid ends. Empty rows are kept so the
    caller decides what to drop.
    """
    members = []
    row = start_row + 1
    while row < grid.row_count:
        lookahead = row + HEADER_LOOKAHEAD
        if lookahead < grid.row_count and is_op_header(grid, lookahead):
            break
        members.append(parse_member_row(grid, row, column_map))
        row += 1
    return members


def load_op(grid: Grid, header_row: int, config: OpConfig,
            diagnostics: Optional[List[str]] = None) -> Op:
    """Build the op whose header row is `header_row`"""
    # Timeslot lives in the cell directly above the header
    timeslot = cell_text(grid.cell(header_row - 1, 0))
    name = f"{grid.title} {timeslot}" if timeslot else grid.title

    column_map = load_column_map(grid, header_row, op_name=name, diagnostics=diagnostics)
    rows = load_members(grid, header_row, column_map)
    members = tuple(member for member in rows if not member.is_empty())
    return Op(name=name, timeslot=timeslot, config=config, members=members)


def ops_from_grid(grid: Grid, diagnostics: Optional[List[str]] = None) -> List[Op]:
    """All ops on a worksheet, top to bottom"""
    print(f"[PARSER] Loading op {grid.title}")
    config = get_op_config(grid)

    ops = []
    for row in range(grid.row_count):
        if is_op_header(grid, row):
            ops.append(load_op(grid, row, config, diagnostics=diagnostics))

    log_ops_loaded(grid.title, len(ops))
    return ops
