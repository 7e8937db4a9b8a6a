"""
Coupons Admin Module
====================

Gift coupon records live in the document store, not the relational
database. Provides the searchable coupon list with stats and marking a
coupon as redeemed.
"""

from flask import Blueprint

coupons_bp = Blueprint(
    'coupons_admin',
    __name__,
    url_prefix='/api/admin/coupons'
)

from . import routes

__all__ = ['coupons_bp']
