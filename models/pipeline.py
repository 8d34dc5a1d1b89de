"""
Run the full parse: grids -> ops -> member streaks.
Routes should use this module rather than the individual parsers.
"""
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models.grid import Grid
from models.metrics import log_run_complete, log_run_failed, log_sheet_skipped
from models.ops import Op, ops_from_grid
from models.sheets import get_non_op_sheets, get_spreadsheet, load_grids
from models.streaks import AchievementEvent, MemberStats, compute_streaks


@dataclass
class ParseResult:
    ops: List[Op]
    members: Dict[str, MemberStats]
    achievement_history: str
    op_achievement_log: str
    events: List[AchievementEvent] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    def get_member(self, name: str) -> Optional[MemberStats]:
        return self.members.get(name.strip().lower())

    def to_dict(self):
        return {
            'ops': [op.to_dict() for op in self.ops],
            'members': {name: stats.to_dict() for name, stats in self.members.items()},
            'achievement_history': self.achievement_history,
            'op_achievement_log': self.op_achievement_log,
            'events': [event.to_dict() for event in self.events],
            'diagnostics': list(self.diagnostics),
        }


def is_op_sheet(grid: Grid, excluded: Iterable[str]) -> bool:
    """Whether a grid should be parsed for ops"""
    if grid.hidden:
        log_sheet_skipped(grid.title, 'hidden')
        return False
    if grid.title in excluded:
        log_sheet_skipped(grid.title, 'non-op sheet')
        return False
    return True


def load_ops(grids: Iterable[Grid], excluded: Optional[Iterable[str]] = None,
             diagnostics: Optional[List[str]] = None) -> List[Op]:
    """Ops from every op sheet, in sheet order then top to bottom"""
    excluded = set(get_non_op_sheets() if excluded is None else excluded)
    ops = []
    for grid in grids:
        if is_op_sheet(grid, excluded):
            ops.extend(ops_from_grid(grid, diagnostics=diagnostics))
    return ops


def parse_grids(grids: Iterable[Grid], excluded: Optional[Iterable[str]] = None) -> ParseResult:
    """Parse already-loaded grids into ops, member stats and achievement logs"""
    started = time.time()
    diagnostics = []
    ops = load_ops(grids, excluded=excluded, diagnostics=diagnostics)
    members, log = compute_streaks(ops)

    result = ParseResult(
        ops=ops,
        members=members,
        achievement_history=log.history_text(),
        op_achievement_log=log.op_log_text(),
        events=list(log.events),
        diagnostics=diagnostics,
    )
    log_run_complete(len(ops), len(members), len(log.events), time.time() - started)
    return result


def run(spreadsheet=None, excluded: Optional[Iterable[str]] = None) -> ParseResult:
    """
    Fetch the operations record and parse it.
    Fetch failures propagate as SheetFetchError and no result is produced.
    """
    try:
        if spreadsheet is None:
            spreadsheet = get_spreadsheet()
        grids = load_grids(spreadsheet)
    except Exception as e:
        log_run_failed(e)
        raise
    return parse_grids(grids, excluded=excluded)
