"""
Books Admin Routes
==================
"""

import logging

from flask import jsonify, request

from . import books_bp
from .service import create_book, delete_book, get_book, list_books, update_book
from ...core.errors import AdminError, error_response
from ...core.logging_service import LoggingService

logger = logging.getLogger(__name__)


def _unexpected(error, message, book_id=None):
    logger.error(f"{message}: {error}")
    LoggingService.log_error_with_traceback('books', error, {'book_id': book_id} if book_id else None)
    return jsonify({'success': False, 'error': message}), 500


@books_bp.route('', methods=['GET'])
def api_books():
    try:
        return jsonify(list_books())
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to fetch books')


@books_bp.route('', methods=['POST'])
def api_create_book():
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(create_book(data)), 201
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to create book')


@books_bp.route('/<book_id>', methods=['GET'])
def api_book_detail(book_id):
    try:
        return jsonify(get_book(book_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to fetch book', book_id)


@books_bp.route('/<book_id>', methods=['PUT'])
def api_update_book(book_id):
    data = request.get_json(silent=True) or {}
    try:
        return jsonify(update_book(book_id, data))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to update book', book_id)


@books_bp.route('/<book_id>', methods=['DELETE'])
def api_delete_book(book_id):
    try:
        return jsonify(delete_book(book_id))
    except AdminError as e:
        return error_response(e)
    except Exception as e:
        return _unexpected(e, 'Failed to delete book', book_id)
