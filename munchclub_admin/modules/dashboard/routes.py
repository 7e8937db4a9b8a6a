"""
Dashboard Routes
================
"""

import logging
from collections import OrderedDict

from flask import jsonify
from sqlalchemy import func
from sqlalchemy.orm import joinedload, selectinload

from . import dashboard_bp
from ...core.database import db, to_iso, utcnow
from ...core.logging_service import LoggingService
from ...core.models import Book, Order, Payment, Recipe, User

logger = logging.getLogger(__name__)

SUCCESSFUL = 'SUCCESSFUL'
RECENT_ORDERS = 6
TOP_BOOKS = 4
REVENUE_MONTHS = 12

ADMIN_ENDPOINTS = [
    '/api/admin/books',
    '/api/admin/users',
    '/api/admin/orders',
    '/api/admin/recipes',
    '/api/admin/payments',
    '/api/admin/coupons',
    '/api/dashboard/stats',
]


def _month_keys(now, count):
    """(year, month) for the last `count` months, oldest first, current month last"""
    keys = []
    year, month = now.year, now.month
    for _ in range(count):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def monthly_revenue(now=None, months=REVENUE_MONTHS):
    """Successful payment totals per calendar month"""
    now = now or utcnow()
    keys = _month_keys(now, months)
    buckets = OrderedDict((key, 0) for key in keys)

    start_year, start_month = keys[0]
    start = now.replace(year=start_year, month=start_month, day=1,
                        hour=0, minute=0, second=0, microsecond=0)

    payments = (
        db.session.query(Payment.created_at, Payment.amount)
        .filter(Payment.payment_status == SUCCESSFUL, Payment.created_at >= start)
        .all()
    )
    for created_at, amount in payments:
        key = (created_at.year, created_at.month)
        if key in buckets:
            buckets[key] += amount or 0

    return [
        {'month': f"{year:04d}-{month:02d}", 'revenue': total}
        for (year, month), total in buckets.items()
    ]


def conversion_funnel(total_users, total_orders):
    """Estimated funnel; only the order count is measured"""
    return {
        'visits': max(total_users * 15, 1000),
        'views': max(total_users * 8, 500),
        'addsToCart': max(total_orders * 2, 100),
        'orders': total_orders,
    }


def dashboard_stats():
    total_users = User.query.count()
    total_orders = Order.query.count()
    total_books = Book.query.count()
    total_recipes = Recipe.query.count()

    total_revenue = (
        db.session.query(func.coalesce(func.sum(Payment.amount), 0))
        .filter(Payment.payment_status == SUCCESSFUL)
        .scalar()
    )

    recent_orders = (
        Order.query
        .options(joinedload(Order.user), joinedload(Order.payment))
        .order_by(Order.created_at.desc(), Order.id)
        .limit(RECENT_ORDERS)
        .all()
    )
    top_books = (
        Book.query
        .options(selectinload(Book.basket_items))
        .order_by(Book.created_at.desc(), Book.id)
        .limit(TOP_BOOKS)
        .all()
    )

    return {
        'totalUsers': total_users,
        'totalOrders': total_orders,
        'totalRevenue': total_revenue or 0,
        'totalBooks': total_books,
        'totalRecipes': total_recipes,
        'recentOrders': [
            {
                'id': order.id,
                'userName': order.user.name if order.user is not None else None,
                'total': order.payment.amount if order.payment is not None and order.payment.amount else 0,
                'status': (order.order_status or '').lower(),
                'createdAt': to_iso(order.created_at),
            }
            for order in recent_orders
        ],
        'topBooks': [
            {'id': book.id, 'title': book.title, 'orderCount': len(book.basket_items)}
            for book in top_books
        ],
        'revenueData': monthly_revenue(),
        'conversionFunnel': conversion_funnel(total_users, total_orders),
    }


@dashboard_bp.route('/dashboard/stats', methods=['GET'])
def api_dashboard_stats():
    try:
        return jsonify(dashboard_stats())
    except Exception as e:
        logger.error(f"Error fetching dashboard stats: {e}")
        LoggingService.log_error_with_traceback('dashboard', e)
        return jsonify({'success': False, 'error': 'Failed to fetch dashboard stats'}), 500


@dashboard_bp.route('/test', methods=['GET'])
def api_test():
    """Liveness ping"""
    return jsonify({
        'message': 'Admin API is working',
        'timestamp': utcnow().isoformat(),
        'endpoints': ADMIN_ENDPOINTS,
    })
