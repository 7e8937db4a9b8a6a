"""
Users Admin Routes
==================
"""

import logging

from flask import jsonify, request

from . import users_bp
from .service import delete_user, list_users
from ...core.errors import AdminError, error_response
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


@users_bp.route('', methods=['GET'])
def api_users():
    try:
        return jsonify(list_users(request.args))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error fetching users: {e}")
        LoggingService.log_error_with_traceback('users', e)
        return jsonify({'success': False, 'error': 'Failed to fetch users'}), 500


@users_bp.route('/<user_id>', methods=['DELETE'])
def api_delete_user(user_id):
    """Delete a user along with their sessions, accounts, books, recipes and communications"""
    try:
        return jsonify(delete_user(user_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Error deleting user {user_id}: {e}")
        LoggingService.log_error_with_traceback('users', e, {'user_id': user_id})
        return jsonify({'success': False, 'error': 'Failed to delete user'}), 500
