"""
Recipes Admin Routes
====================
"""

import logging

from flask import jsonify, request

from . import recipes_bp
from .service import delete_recipe, get_recipe, list_recipes, update_recipe
from ...core.errors import AdminError, error_response
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def _unexpected(error, message, recipe_id=None):
    logger.error(f"{message}: {error}")
    LoggingService.log_error_with_traceback('recipes', error, {'recipe_id': recipe_id} if recipe_id else None)
    return jsonify({'success': False, 'error': message}), 500


@recipes_bp.route('', methods=['GET'])
def api_recipes():
    try:
        return jsonify(list_recipes(request.args))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to fetch recipes')


@recipes_bp.route('/<recipe_id>', methods=['GET'])
def api_recipe_detail(recipe_id):
    try:
        return jsonify(get_recipe(recipe_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to fetch recipe', recipe_id)


@recipes_bp.route('/<recipe_id>', methods=['PUT'])
def api_update_recipe(recipe_id):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(update_recipe(recipe_id, data))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to update recipe', recipe_id)


@recipes_bp.route('/<recipe_id>', methods=['DELETE'])
def api_delete_recipe(recipe_id):
    try:
        return jsonify(delete_recipe(recipe_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to delete recipe', recipe_id)
