import re

_LEADING_INT = re.compile(r'^\s*([+-]?[0-9]+)')


def is_empty(value):
    """True for cells with no value (None or blank text)"""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ''


def cell_text(value):
    """Render a cell value as trimmed text ('' for empty cells)"""
    if value is None:
        return ''
    return str(value).strip()


def parse_int(value):
    """
    Parse the leading integer of a cell value.
    Returns None when there is nothing to parse, e.g. blank cells,
    booleans or text like 'DNF'.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float('inf'), float('-inf')):
            return None
        return int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_bool(value):
    """Coerce a checkbox or text cell into a bool"""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return cell_text(value).lower() in ['true', 'yes', '1']


def normalize_name(value):
    """Identity key for a pilot name: trimmed and lowercased"""
    return cell_text(value).lower()


def format_value(value):
    """Render a raw cell value inside a history line"""
    if value is None:
        return ''
    return str(value)
