"""
History routes for Autoledger.

Unified maintenance + fuel timeline, period statistics and vehicle comparison.
All endpoints are read-only and scoped to the authenticated owner.
"""

import logging

from database import get_db
from extensions import RateLimits, limiter
from flask import Blueprint, jsonify, request
from services.comparison_service import compare_vehicles
from services.history_filters import (
    compile_history_filters,
    parse_comparison_ids,
    parse_vehicle_id,
    resolve_period,
)
from services.history_service import list_timeline
from services.statistics_service import ensure_vehicle_owned, get_period_statistics
from utils.auth_utils import current_user_id, require_owner

logger = logging.getLogger(__name__)

history_bp = Blueprint('history', __name__)


@history_bp.route('/history', methods=['GET'])
@limiter.limit(RateLimits.READ_HEAVY)
@require_owner
def get_history():
    """
    Unified timeline of maintenance services and fuel purchases.

    Query params: vehicle_id, type, category, fuel_type, start_date, end_date,
    min_cost, max_cost, sort_by, sort_order, limit, offset.
    """
    user_id = current_user_id()
    compiled = compile_history_filters(request.args)

    db = get_db()
    vehicle_id = compiled.filters['vehicle_id']
    if vehicle_id is not None:
        ensure_vehicle_owned(db, user_id, vehicle_id)

    result = list_timeline(db, user_id, compiled)
    return jsonify({'success': True, 'data': result})


@history_bp.route('/history/statistics', methods=['GET'])
@limiter.limit(RateLimits.EXPENSIVE)
@require_owner
def get_statistics():
    """
    Cost statistics for a window.

    Query params: vehicle_id, start_date, end_date, period
    (last_month, last_3_months, last_6_months, last_year, all_time).
    """
    user_id = current_user_id()
    vehicle_id = parse_vehicle_id(request.args)
    start_date, end_date = resolve_period(request.args)

    stats = get_period_statistics(get_db(), user_id, start_date, end_date, vehicle_id=vehicle_id)
    return jsonify({'success': True, 'data': stats})


@history_bp.route('/history/compare-vehicles', methods=['GET'])
@limiter.limit(RateLimits.EXPENSIVE)
@require_owner
def get_vehicle_comparison():
    """
    Rank 2-5 vehicles by cost per distance.

    Query params: vehicle_ids (comma separated), start_date, end_date, period.
    """
    user_id = current_user_id()
    vehicle_ids = parse_comparison_ids(request.args.get('vehicle_ids'))
    start_date, end_date = resolve_period(request.args)

    comparison = compare_vehicles(get_db(), user_id, vehicle_ids, start_date, end_date)
    return jsonify({'success': True, 'data': comparison})


@history_bp.route('/health', methods=['GET'])
@limiter.limit(RateLimits.PUBLIC)
def health():
    """Liveness probe."""
    return jsonify({'status': 'online', 'service': 'autoledger'})
