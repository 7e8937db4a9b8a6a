"""
Munch Club Admin Core
=====================

Core utilities and shared functionality for the admin modules.
"""

from .config import Config
from .database import db
from .document_store import CouponStore
from .errors import AdminError, NotFound, InvalidArgument, UpstreamUnavailable, PersistenceError
from .logging_service import LoggingService, logger, db_log

__all__ = [
    'Config', 'db', 'CouponStore', 'LoggingService', 'logger', 'db_log',
    'AdminError', 'NotFound', 'InvalidArgument', 'UpstreamUnavailable', 'PersistenceError',
]
