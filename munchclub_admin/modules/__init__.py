"""
Munch Club Admin Modules
========================

Flask blueprint modules for the admin API, plus the printer gateway client.
"""

__all__ = ['orders', 'printer', 'coupons', 'users', 'books', 'recipes', 'payments', 'dashboard']
