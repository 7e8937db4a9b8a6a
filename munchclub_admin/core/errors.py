"""
Error taxonomy shared by the admin services.

Services raise these; blueprints turn them into JSON error bodies with
error_response(). Anything else reaching a route is logged and reported as a
generic 500.
"""

from flask import jsonify


class AdminError(Exception):
    """Base class for errors that map onto an HTTP response"""
    status_code = 500

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFound(AdminError):
    """Requested entity does not exist"""
    status_code = 404


class InvalidArgument(AdminError):
    """Missing or malformed required input"""
    status_code = 400


class UpstreamUnavailable(AdminError):
    """Printer gateway unreachable or answered with an error"""
    status_code = 502


class PersistenceError(AdminError):
    """Store-level failure; the message is safe to show, details are logged"""
    status_code = 500


def error_response(error):
    return jsonify({'success': False, 'error': error.message}), error.status_code
