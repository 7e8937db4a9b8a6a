"""
Users Admin Module
==================

Customer account listing and removal.
"""

from flask import Blueprint

users_bp = Blueprint(
    'users_admin',
    __name__,
    url_prefix='/api/admin/users'
)

from . import routes

__all__ = ['users_bp']
