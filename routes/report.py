import threading

from flask import Response, jsonify

from models import pipeline
from models.metrics import get_metrics
from models.sheets import RateLimitError, SheetFetchError

# Last successful run, shared by the read routes
_last_result = None
_run_lock = threading.Lock()


def get_result(refresh=False):
    """
    Return the cached result, running the pipeline when there is none.
    The lock only guards the swap so reads never wait on a fetch.
    """
    global _last_result
    with _run_lock:
        result = _last_result
    if refresh or result is None:
        result = pipeline.run()
        with _run_lock:
            _last_result = result
    return result


def clear_result():
    global _last_result
    with _run_lock:
        _last_result = None


def _error_response(error):
    status = 429 if isinstance(error, RateLimitError) else 503
    return jsonify({'error': error.message}), status


def _text(body):
    return Response(body, mimetype='text/plain')


def register_report_routes(app):
    """Register all report-related routes"""

    @app.route('/run', methods=['POST'])
    def run_report():
        try:
            result = get_result(refresh=True)
        except SheetFetchError as e:
            return _error_response(e)
        return jsonify({
            'ops': len(result.ops),
            'members': len(result.members),
            'achievements': len(result.events),
            'diagnostics': result.diagnostics,
        })

    @app.route('/ops')
    def ops():
        try:
            result = get_result()
        except SheetFetchError as e:
            return _error_response(e)
        return jsonify([op.to_dict() for op in result.ops])

    @app.route('/achievements')
    def achievements():
        try:
            result = get_result()
        except SheetFetchError as e:
            return _error_response(e)
        return _text(result.achievement_history)

    @app.route('/achievements/ops')
    def op_achievements():
        try:
            result = get_result()
        except SheetFetchError as e:
            return _error_response(e)
        return _text(result.op_achievement_log)

    @app.route('/members/<path:member_name>')
    def member(member_name):
        try:
            result = get_result()
        except SheetFetchError as e:
            return _error_response(e)

        stats = result.get_member(member_name)
        if stats is None:
            return jsonify({'error': f"No ops found for '{member_name}'"}), 404
        return jsonify(stats.to_dict())

    @app.route('/metrics')
    def metrics():
        return jsonify(get_metrics())
