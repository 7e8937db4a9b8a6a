"""
Orders Admin Routes
===================
"""

import logging

from flask import jsonify, request

from . import orders_bp
from .projection import get_order_detail
from .service import delete_order, list_orders, update_order_status
from ..printer.service import refresh_printer_status
from ...core.errors import AdminError, error_response
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def _unexpected(error, message, order_id=None):
    logger.error(f"{message}: {error}")
    LoggingService.log_error_with_traceback('orders', error, {'order_id': order_id} if order_id else None)
    return jsonify({'success': False, 'error': message}), 500


@orders_bp.route('', methods=['GET'])
def api_orders():
    """Paginated order list with search, status filter and sorting"""
    try:
        return jsonify(list_orders(request.args))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to fetch orders')


@orders_bp.route('/<order_id>', methods=['GET'])
def api_order_detail(order_id):
    try:
        return jsonify(get_order_detail(order_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to fetch order', order_id)


@orders_bp.route('/<order_id>', methods=['PATCH'])
def api_update_order(order_id):
    """Update order status; body is {status, note?}"""
    data = request.get_json(silent=True) or {}

    try:
        order = update_order_status(order_id, data.get('status'), data.get('note'))
        return jsonify(order)
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to update order', order_id)


@orders_bp.route('/<order_id>', methods=['DELETE'])
def api_delete_order(order_id):
    try:
        return jsonify(delete_order(order_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to delete order', order_id)


@orders_bp.route('/<order_id>/printer-status', methods=['GET'])
def api_printer_status(order_id):
    """Poll the printer gateway for every printer order and cache the first result"""
    try:
        return jsonify(refresh_printer_status(order_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to check printer status', order_id)
