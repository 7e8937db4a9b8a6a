"""
Books Admin Module
==================

Cookbook management: listing with recipe/order counts, create, detail,
edit and delete.
"""

from flask import Blueprint

books_bp = Blueprint(
    'books_admin',
    __name__,
    url_prefix='/api/admin/books'
)

from . import routes

__all__ = ['books_bp']
