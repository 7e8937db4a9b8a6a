"""
Order Service
=============

Status transitions with their audit trail, order listing/search and the
admin hard delete.
"""

import logging
import re

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from ...core.database import (
    db, utcnow, contains_pattern, parse_pagination_params, pagination_payload, run_cleanup_steps
)
from ...core.errors import InvalidArgument, NotFound, PersistenceError
from ...core.logging_service import db_log
from ...core.models import (
    BasketItem, Book, Order, OrderShipping, OrderStatusHistory, Payment, User
)
from .projection import build_order_summary, get_order_detail, order_query
from .status import OrderStatus, UnrecognizedStatus, parse_status, parse_status_filter, status_value

logger = logging.getLogger(__name__)

OBJECT_ID_RE = re.compile(r'^[a-fA-F0-9]{24}$')

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def update_order_status(order_id, status, note=None):
    """
    Move an order to a new status and append a history entry.

    Both writes are committed together. Returns the refreshed order detail.
    Two concurrent calls on one order both land in the history; the later
    commit wins on the status field.
    """
    if not order_id:
        raise InvalidArgument('Order ID is required')
    if not isinstance(status, str) or not status.strip():
        raise InvalidArgument('Status is required')

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound('Order not found')

    parsed = parse_status(status)
    if isinstance(parsed, UnrecognizedStatus):
        logger.warning("Order %s moved to unrecognized status %r", order_id, parsed.value)
        db_log('warning', 'orders', f"Unrecognized status '{parsed.value}' for order {order_id}")

    new_status = status_value(parsed)
    previous_status = order.order_status

    try:
        order.order_status = new_status
        db.session.add(OrderStatusHistory(
            order_id=order.id,
            status=new_status,
            message={'note': note or f"Status updated to {new_status}"},
            timestamp=utcnow(),
        ))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error updating status for order {order_id}: {e}")
        db_log('error', 'orders', f'Failed to update status for order {order_id}', {'error': str(e)})
        raise PersistenceError('Failed to update order') from e

    db_log('info', 'orders', f"Order {order_id} status {previous_status} -> {new_status}")
    return get_order_detail(order_id)


def _search_filter(q):
    pattern = contains_pattern(q)
    conditions = [
        Order.user.has(or_(
            User.name.ilike(pattern, escape='\\'),
            User.email.ilike(pattern, escape='\\'),
        )),
        Order.basket_items.any(BasketItem.book.has(Book.title.ilike(pattern, escape='\\'))),
    ]
    if OBJECT_ID_RE.match(q):
        conditions.append(Order.id == q)
    return or_(*conditions)


def _apply_sort(query, sort_field, sort_dir):
    def direction(column):
        return column.asc() if sort_dir == 'asc' else column.desc()

    if sort_field == 'status':
        query = query.order_by(direction(Order.order_status))
    elif sort_field == 'total':
        query = query.outerjoin(Payment, Payment.order_id == Order.id).order_by(direction(Payment.amount))
    elif sort_field == 'customer':
        query = query.outerjoin(User, User.id == Order.user_id).order_by(direction(func.lower(User.name)))
    else:
        query = query.order_by(direction(Order.created_at))
    return query.order_by(Order.id)


def order_stats():
    counts = dict(
        db.session.query(Order.order_status, func.count(Order.id))
        .group_by(Order.order_status)
        .all()
    )
    return {
        'totalOrders': sum(counts.values()),
        'pendingOrders': counts.get(OrderStatus.PENDING.value, 0),
        'deliveredOrders': counts.get(OrderStatus.DELIVERED.value, 0),
        'shippedOrders': counts.get(OrderStatus.SHIPPED.value, 0),
    }


def list_orders(args):
    """
    Paginated order list.

    Supports q (customer name/email, book title, or exact order id),
    status (known statuses only), sortField (date, status, total, customer)
    and sortDir (asc/desc).
    """
    page, limit, skip = parse_pagination_params(args, default_limit=DEFAULT_LIMIT, max_limit=MAX_LIMIT)
    q = (args.get('q') or '').strip()
    status = parse_status_filter(args.get('status') or '')
    sort_field = (args.get('sortField') or 'date').strip().lower()
    sort_dir = 'asc' if (args.get('sortDir') or 'desc').strip().lower() == 'asc' else 'desc'

    filters = []
    if q:
        filters.append(_search_filter(q))
    if status is not None:
        filters.append(Order.order_status == status.value)

    total_count = Order.query.filter(*filters).count()

    query = _apply_sort(order_query().filter(*filters), sort_field, sort_dir)
    orders = query.offset(skip).limit(limit).all()

    return {
        'orders': [build_order_summary(order) for order in orders],
        'pagination': pagination_payload(total_count, page, limit),
        'stats': order_stats(),
    }


def delete_order(order_id):
    """
    Hard delete an order.

    Dependent rows go first, each step best-effort: shipping links, status
    history, payment, then basket items are detached. Only a failure to
    delete the order row itself is an error.
    """
    if not order_id:
        raise InvalidArgument('Order ID is required')
    if db.session.get(Order, order_id) is None:
        raise NotFound('Order not found')

    failed = run_cleanup_steps([
        ('order shippings', lambda: OrderShipping.query.filter_by(order_id=order_id)
            .delete(synchronize_session=False)),
        ('status history', lambda: OrderStatusHistory.query.filter_by(order_id=order_id)
            .delete(synchronize_session=False)),
        ('payment', lambda: Payment.query.filter_by(order_id=order_id)
            .delete(synchronize_session=False)),
        ('basket items', lambda: BasketItem.query.filter_by(order_id=order_id)
            .update({'order_id': None}, synchronize_session=False)),
    ], source='orders')

    try:
        Order.query.filter_by(id=order_id).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error deleting order {order_id}: {e}")
        raise PersistenceError('Failed to delete order') from e

    db_log('info', 'orders', f"Deleted order {order_id}", {'skipped_steps': failed} if failed else None)
    return {'success': True}
