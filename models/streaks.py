"""
Streak replay over the ordered op list.

Each member's results are replayed op by op, in the order the ops were
loaded. Two counters run independently: ops without a combat death and ops
without a bolter. A counter reaching STREAK_THRESHOLD awards the member,
resets to 0 and is written to the achievement logs.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from models.metrics import log_achievement
from models.ops import Op, OpMember
from models.utils import format_value, parse_int

STREAK_THRESHOLD = 5


class Change(Enum):
    NO_CHANGE = 'no_change'
    PASSED = 'passed'
    FAILED = 'failed'


class AchievementKind(Enum):
    NO_DEATH_STREAK = 'FIVE OPS WITHOUT DEATH'
    NO_BOLTER_STREAK = 'FIVE OPS WITHOUT BOLTER'

    @property
    def marker(self) -> str:
        return f"[{self.value}]"


# Verb used in the achievement history line
_HISTORY_VERBS = {
    AchievementKind.NO_DEATH_STREAK: 'died',
    AchievementKind.NO_BOLTER_STREAK: 'boltered',
}


def classify(value, ignore_because_of_config: bool) -> Change:
    """
    Classify one op result.
    A positive count fails the streak, zero (or less) passes it, and a
    blank or unparsable value leaves it alone. Disabled categories never
    change anything.
    """
    if ignore_because_of_config:
        return Change.NO_CHANGE
    number = parse_int(value)
    if number is None:
        return Change.NO_CHANGE
    if number > 0:
        return Change.FAILED
    return Change.PASSED


@dataclass(frozen=True)
class AchievementEvent:
    op_name: str
    display_name: str
    kind: AchievementKind
    count: int

    def to_dict(self):
        return {
            'op_name': self.op_name,
            'display_name': self.display_name,
            'kind': self.kind.name,
            'count': self.count,
        }


@dataclass
class MemberStats:
    display_name: str
    history: List[str] = field(default_factory=list)
    five_ops_without_death: int = 0
    five_ops_without_bolter: int = 0

    def history_text(self) -> str:
        return ''.join(f"{line}\n" for line in self.history)

    def award_count(self, kind: AchievementKind) -> int:
        if kind is AchievementKind.NO_DEATH_STREAK:
            return self.five_ops_without_death
        return self.five_ops_without_bolter

    def add_award(self, kind: AchievementKind) -> int:
        """Count an award and return the new total for that kind"""
        if kind is AchievementKind.NO_DEATH_STREAK:
            self.five_ops_without_death += 1
        else:
            self.five_ops_without_bolter += 1
        return self.award_count(kind)

    def to_dict(self):
        return {
            'display_name': self.display_name,
            'history': self.history_text(),
            'five_ops_without_death': self.five_ops_without_death,
            'five_ops_without_bolter': self.five_ops_without_bolter,
        }


class AchievementLog:
    """Achievement output of a single run: events, global history, per-op sections"""

    def __init__(self, ops: List[Op] = ()):
        self.events: List[AchievementEvent] = []
        self.history: List[str] = []
        self._op_lines: Dict[str, List[str]] = {}
        for op in ops:
            self.add_op(op.name)

    def add_op(self, op_name: str):
        self._op_lines.setdefault(op_name, [])

    def record(self, event: AchievementEvent):
        verb = _HISTORY_VERBS[event.kind]
        self.events.append(event)
        self.history.append(
            f"After {event.op_name}, {event.display_name} has not {verb} in {STREAK_THRESHOLD} ops!")
        self._op_lines.setdefault(event.op_name, []).append(
            f"{event.kind.marker} {event.display_name}. They now have this award {event.count} times")

    def history_text(self) -> str:
        return ''.join(f"{line}\n" for line in self.history)

    def op_log_text(self) -> str:
        sections = []
        for op_name, lines in self._op_lines.items():
            sections.append(f"------ {op_name} ------\n")
            sections.extend(f"{line}\n" for line in lines)
        return ''.join(sections)


def _death_entry(member: OpMember, op: Op) -> Tuple[Change, str]:
    result = classify(member.combat_deaths, not op.config.count_deaths)
    raw = format_value(member.combat_deaths)
    if result is Change.FAILED:
        return result, f"Died {raw} times"
    if result is Change.PASSED:
        return result, f"Did not die ({raw})"
    return result, f"No logged death ({raw})"


def _bolter_entry(member: OpMember, op: Op) -> Tuple[Change, str]:
    result = classify(member.bolters, not op.config.count_bolters)
    raw = format_value(member.bolters)
    if result is Change.FAILED:
        return result, f"Boltered {raw} times"
    if result is Change.PASSED:
        return result, f"Did not bolter ({raw})"
    return result, f"No trap ({raw})"


def _advance(streak: int, result: Change) -> int:
    if result is Change.FAILED:
        return 0
    if result is Change.PASSED:
        return streak + 1
    return streak


def replay_member(unique_name: str, ops: List[Op], log: AchievementLog) -> MemberStats:
    """Replay one member's ops in order, recording awards into `log`"""
    stats = None
    ops_without_death = 0
    ops_without_bolter = 0

    for op in ops:
        member = op.get_member(unique_name)
        if member is None:
            continue
        if stats is None:
            stats = MemberStats(display_name=member.display_name)

        death_result, death_log = _death_entry(member, op)
        bolter_result, bolter_log = _bolter_entry(member, op)
        ops_without_death = _advance(ops_without_death, death_result)
        ops_without_bolter = _advance(ops_without_bolter, bolter_result)

        markers = []
        if ops_without_death >= STREAK_THRESHOLD:
            ops_without_death = 0
            markers.append(_award(stats, member, op, AchievementKind.NO_DEATH_STREAK, log))
        if ops_without_bolter >= STREAK_THRESHOLD:
            ops_without_bolter = 0
            markers.append(_award(stats, member, op, AchievementKind.NO_BOLTER_STREAK, log))

        wire = 'N/A' if member.wire is None else member.wire
        remarks = 'N/A' if member.remarks is None else member.remarks
        stats.history.append(
            f"{op.name}: {death_log} {bolter_log} Wire: {wire} Remarks: {remarks} {' '.join(markers)}".rstrip())

    if stats is None:
        stats = MemberStats(display_name=unique_name)
    return stats


def _award(stats: MemberStats, member: OpMember, op: Op, kind: AchievementKind,
           log: AchievementLog) -> str:
    count = stats.add_award(kind)
    log.record(AchievementEvent(op_name=op.name, display_name=member.display_name,
                                kind=kind, count=count))
    log_achievement(op.name, member.display_name, kind.value, count)
    return kind.marker


def member_names(ops: List[Op]) -> List[str]:
    """Unique member keys in order of first appearance"""
    names = {}
    for op in ops:
        for member in op.members:
            if member.unique_name:
                names.setdefault(member.unique_name, None)
    return list(names)


def compute_streaks(ops: List[Op]) -> Tuple[Dict[str, MemberStats], AchievementLog]:
    """Replay every member over `ops` and return their stats and the achievement log"""
    log = AchievementLog(ops)
    members = {}
    for unique_name in member_names(ops):
        members[unique_name] = replay_member(unique_name, ops, log)
    return members, log
