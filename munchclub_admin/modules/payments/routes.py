"""
Payments Admin Routes
=====================
"""

import logging

from flask import jsonify, request
from sqlalchemy.orm import joinedload

from . import payments_bp
from ...core.database import to_iso, parse_pagination_params, pagination_payload
from ...core.logging_service import LoggingService
from ...core.models import Order, Payment

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
SUCCESSFUL = 'SUCCESSFUL'
FAILED = 'FAILED'


def _payment_row(payment):
    order = payment.order
    customer = order.user if order is not None else None
    return {
        'id': payment.id,
        'stripePaymentId': payment.stripe_payment_id,
        'amount': payment.amount or 0,
        'status': payment.payment_status,
        'createdAt': to_iso(payment.created_at),
        'order': {
            'id': order.id,
            'status': order.order_status,
            'createdAt': to_iso(order.created_at),
            'customer': {
                'id': customer.id,
                'name': customer.name,
                'email': customer.email,
            } if customer is not None else None,
        } if order is not None else None,
    }


def list_payments(args):
    """Newest payments first; amount and status stats cover the returned page"""
    page, limit, skip = parse_pagination_params(args, default_limit=DEFAULT_LIMIT, max_limit=MAX_LIMIT)

    payments = (
        Payment.query
        .options(joinedload(Payment.order).joinedload(Order.user))
        .order_by(Payment.created_at.desc(), Payment.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    total_count = Payment.query.count()
    rows = [_payment_row(payment) for payment in payments]

    return {
        'payments': rows,
        'pagination': pagination_payload(total_count, page, limit),
        'stats': {
            'totalPayments': total_count,
            'totalAmount': sum(row['amount'] for row in rows),
            'successfulPayments': sum(1 for row in rows if row['status'] == SUCCESSFUL),
            'failedPayments': sum(1 for row in rows if row['status'] == FAILED),
        },
    }


@payments_bp.route('', methods=['GET'])
def api_payments():
    try:
        return jsonify(list_payments(request.args))
    except Exception as e:
        logger.error(f"Error fetching payments: {e}")
        LoggingService.log_error_with_traceback('payments', e)
        return jsonify({'success': False, 'error': 'Failed to fetch payments'}), 500
