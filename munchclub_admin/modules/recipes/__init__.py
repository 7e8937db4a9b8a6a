"""
Recipes Admin Module
====================

Recipe moderation: listing, detail, edit and delete.
"""

from flask import Blueprint

recipes_bp = Blueprint(
    'recipes_admin',
    __name__,
    url_prefix='/api/admin/recipes'
)

from . import routes

__all__ = ['recipes_bp']
