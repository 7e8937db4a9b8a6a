"""
Orders Admin Module
===================

JSON API for order management.

Provides:
- Order listing, search and sorting
- Order detail projection
- Order status management with history
- Printer status refresh against the fulfillment gateway
- Hard delete of an order and its dependent rows
"""

from flask import Blueprint

orders_bp = Blueprint(
    'orders_admin',
    __name__,
    url_prefix='/api/admin/orders'
)

from . import routes

__all__ = ['orders_bp']
