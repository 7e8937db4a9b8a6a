"""
Dashboard Module
================

Headline numbers for the admin home page and the API liveness ping.

Provides:
- /api/dashboard/stats: totals, revenue, recent orders, newest books,
  monthly revenue and the conversion funnel
- /api/test: ping listing the admin endpoints
"""

from flask import Blueprint

dashboard_bp = Blueprint(
    'admin_dashboard',
    __name__,
    url_prefix='/api'
)

from . import routes

__all__ = ['dashboard_bp']
