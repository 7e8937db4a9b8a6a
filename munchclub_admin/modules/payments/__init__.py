"""
Payments Admin Module
=====================

Read-only view of payment records with their order and customer.
"""

from flask import Blueprint

payments_bp = Blueprint(
    'payments_admin',
    __name__,
    url_prefix='/api/admin/payments'
)

from . import routes

__all__ = ['payments_bp']
