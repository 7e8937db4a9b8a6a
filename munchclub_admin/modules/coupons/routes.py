"""
Coupons Admin Routes
====================
"""

import logging

from flask import current_app, jsonify, request

from . import coupons_bp
from .service import DEFAULT_LIMIT, list_coupons, redeem_coupon
from ...core.database import to_int
from ...core.errors import AdminError, error_response
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def _coupon_store():
    return current_app.extensions['munchclub_admin'].coupon_store


@coupons_bp.route('', methods=['GET'])
def api_coupons():
    """Search coupons by code, names or emails"""
    q = request.args.get('q', '')
    page = to_int(request.args.get('page'), 1)
    limit = to_int(request.args.get('limit'), DEFAULT_LIMIT)

    try:
        with _coupon_store() as store:
            return jsonify(list_coupons(store, q, page, limit))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error fetching coupons: {e}")
        LoggingService.log_error_with_traceback('coupons', e)
        return jsonify({'success': False, 'error': 'Failed to fetch coupons'}), 500


@coupons_bp.route('/<coupon_id>', methods=['PATCH'])
def api_redeem_coupon(coupon_id):
    """Mark a coupon as redeemed"""
    try:
        with _coupon_store() as store:
            return jsonify(redeem_coupon(store, coupon_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error redeeming coupon {coupon_id}: {e}")
        LoggingService.log_error_with_traceback('coupons', e, {'coupon_id': coupon_id})
        return jsonify({'success': False, 'error': 'Failed to update coupon'}), 500
