from flask import Flask, request, jsonify
from datetime import date

from body_weight import compute_body_weight_stats
from errors import InsufficientSampleError, UnknownMetricError
from logging_setup import setup_logging, get_logger
from metrics import compute_flock_kpis
from models import Flock
from series import (
    build_growth_series, build_weekly_performance_series, build_report_series, available_metrics,
)
from units import parse_number

logger = get_logger(module="app")

app = Flask(__name__)
app.json.sort_keys = False


def _payload():
    return request.get_json(silent=True) or {}


def _date_range(payload):
    start = payload.get('start_date')
    end = payload.get('end_date')
    if not start and not end:
        return None
    return (start or None, end or None)


def _to_json(value):
    # Dates and ISO week tuples are the only non-JSON types the builders emit
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    return value


@app.errorhandler(InsufficientSampleError)
def handle_insufficient_sample(e):
    logger.warning("Body weight calculation rejected", valid_count=e.valid_count)
    return jsonify({'error': str(e), 'valid_count': e.valid_count, 'minimum': e.minimum}), 422


@app.errorhandler(UnknownMetricError)
def handle_unknown_metric(e):
    logger.warning("Unknown metric requested", metric=e.metric)
    return jsonify({'error': str(e)}), 400


@app.route('/api/metrics')
def get_metrics_list():
    return jsonify(available_metrics())


@app.route('/api/flock/kpis', methods=['POST'])
def flock_kpis():
    data = _payload()
    flock = Flock.from_dict(data.get('flock') or {})
    kpis = compute_flock_kpis(flock, data.get('production', []), data.get('mortality', []))
    return jsonify(kpis.to_dict())


@app.route('/api/body_weight/stats', methods=['POST'])
def body_weight_stats():
    data = _payload()
    tolerance = data.get('tolerance_percent')
    stats = compute_body_weight_stats(
        data.get('weights', ''),
        tolerance_percent=parse_number(tolerance) if tolerance not in (None, '') else None,
    )
    return jsonify(stats.to_dict())


@app.route('/api/flock/growth_series', methods=['POST'])
def growth_series():
    data = _payload()
    max_weeks = data.get('max_weeks')
    result = build_growth_series(
        Flock.from_dict(data.get('flock') or {}),
        data.get('body_weights', []),
        data.get('standard_points', []),
        max_weeks=int(parse_number(max_weeks)) if max_weeks not in (None, '') else None,
    )
    return jsonify(_to_json(result))


@app.route('/api/flock/weekly_series', methods=['POST'])
def weekly_series():
    data = _payload()
    result = build_weekly_performance_series(
        Flock.from_dict(data.get('flock') or {}),
        data.get('production', []),
        data.get('standard_points', []),
        metric=data.get('metric', 'hen_day_production_percent'),
        date_range=_date_range(data),
        mortality_history=data.get('mortality', []),
        body_weight_history=data.get('body_weights', []),
        respiratory_history=data.get('respiratory', []),
    )
    return jsonify(_to_json(result))


@app.route('/api/report', methods=['POST'])
def production_report():
    data = _payload()
    result = build_report_series(
        data.get('production', []),
        data.get('standard_points', []),
        date_range=_date_range(data),
        flocks=data.get('flocks', []),
    )
    return jsonify(_to_json(result))


if __name__ == '__main__':
    setup_logging()
    app.run(debug=False)
