import threading
import time
from datetime import datetime
from collections import deque

# Metrics storage
_metrics = {
    'runs': 0,
    'failed_runs': 0,
    'sheets_loaded': 0,
    'sheets_skipped': 0,
    'ops_loaded': 0,
    'missing_columns': 0,
    'achievements': 0,
    'rate_limit_errors': 0,
    'last_run_seconds': None,
    'recent_events': deque(maxlen=100),
}
_metrics_lock = threading.Lock()


def _record(kind, **details):
    """Store an event in the recent events buffer"""
    event = {
        'time': time.time(),
        'timestamp': datetime.now().strftime('%H:%M:%S'),
        'kind': kind,
    }
    event.update(details)
    _metrics['recent_events'].append(event)


def log_sheet_loaded(sheet_name, rows, columns):
    """Log a worksheet fetched from Google"""
    with _metrics_lock:
        _metrics['sheets_loaded'] += 1
        _record('sheet_loaded', sheet=sheet_name, rows=rows, columns=columns)
    print(f"[SHEETS] 🌐 Loaded '{sheet_name}' ({rows} rows x {columns} cols)")


def log_sheet_skipped(sheet_name, reason):
    """Log a worksheet that is not parsed for ops"""
    with _metrics_lock:
        _metrics['sheets_skipped'] += 1
        _record('sheet_skipped', sheet=sheet_name, reason=reason)
    print(f"[PARSER] ⏭️ Skipping '{sheet_name}' ({reason})")


def log_ops_loaded(sheet_name, op_count):
    """Log ops found on a worksheet"""
    with _metrics_lock:
        _metrics['ops_loaded'] += op_count
        _record('ops_loaded', sheet=sheet_name, ops=op_count)
    print(f"[PARSER] 📋 Loaded {op_count} op(s) from '{sheet_name}'")


def log_missing_column(op_name, field_name):
    """Log a field with no matching header column. Returns the diagnostic message."""
    message = f"Unable to find column for {field_name} in '{op_name}'"
    with _metrics_lock:
        _metrics['missing_columns'] += 1
        _record('missing_column', op=op_name, field=field_name)
    print(f"[PARSER] ⚠️ {message}")
    return message


def log_achievement(op_name, display_name, kind, count):
    """Log an awarded streak achievement"""
    with _metrics_lock:
        _metrics['achievements'] += 1
        _record('achievement', op=op_name, member=display_name, award=kind, count=count)
    print(f"[STREAKS] 🏅 {display_name}: {kind} after '{op_name}' (x{count})")


def log_rate_limit_error(sheet_name=None):
    """Log a rate limit error"""
    with _metrics_lock:
        _metrics['rate_limit_errors'] += 1
        _record('rate_limit', sheet=sheet_name)
    target = f" for '{sheet_name}'" if sheet_name else ""
    print(f"[SHEETS] ⛔ RATE LIMIT{target}")


def log_run_complete(op_count, member_count, achievement_count, elapsed):
    """Log a finished pipeline run"""
    with _metrics_lock:
        _metrics['runs'] += 1
        _metrics['last_run_seconds'] = elapsed
        _record('run_complete', ops=op_count, members=member_count, achievements=achievement_count)
    print(f"[PARSER] ✅ Done parsing! {op_count} ops | {member_count} members | "
          f"{achievement_count} achievements | {elapsed:.2f}s")


def log_run_failed(error):
    """Log a pipeline run that produced no result"""
    with _metrics_lock:
        _metrics['failed_runs'] += 1
        _record('run_failed', error=str(error))
    print(f"[PARSER] ❌ Run failed: {error}")


def reset_metrics():
    """Reset all counters and the recent events buffer"""
    with _metrics_lock:
        for key in ('runs', 'failed_runs', 'sheets_loaded', 'sheets_skipped', 'ops_loaded',
                    'missing_columns', 'achievements', 'rate_limit_errors'):
            _metrics[key] = 0
        _metrics['last_run_seconds'] = None
        _metrics['recent_events'].clear()


def get_metrics():
    """Get current run metrics"""
    with _metrics_lock:
        return {
            'runs': _metrics['runs'],
            'failed_runs': _metrics['failed_runs'],
            'sheets_loaded': _metrics['sheets_loaded'],
            'sheets_skipped': _metrics['sheets_skipped'],
            'ops_loaded': _metrics['ops_loaded'],
            'missing_columns': _metrics['missing_columns'],
            'achievements': _metrics['achievements'],
            'rate_limit_errors': _metrics['rate_limit_errors'],
            'last_run_seconds': _metrics['last_run_seconds'],
            'recent_events': list(_metrics['recent_events']),
        }
