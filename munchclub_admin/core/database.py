import logging
import math
import os
from datetime import datetime, timezone

from bson import ObjectId
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

from .config import Config

logger = logging.getLogger(__name__)

db = SQLAlchemy()


def new_id():
    """24-hex id, the same shape the storefront uses for its records"""
    return str(ObjectId())


def utcnow():
    """Naive UTC timestamp (SQLite DateTime columns are timezone-less)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value):
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def get_config_value(key, default=None):
    """Get configuration value: Flask app config first, then Config, then env var"""
    try:
        from flask import current_app
        val = current_app.config.get(key)
        if val is not None:
            return val
    except RuntimeError:
        pass
    val = getattr(Config, key, None)
    if val is not None:
        return val
    return os.getenv(key, default)


def to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_pagination_params(args, default_limit=10, max_limit=None):
    """
    Read page/limit from request args.

    Returns (page, limit, skip). Page floors at 1, limit at 1, and limit is
    capped at max_limit when one is given.
    """
    page = max(1, to_int(args.get('page'), 1))
    limit = max(1, to_int(args.get('limit'), default_limit))
    if max_limit is not None:
        limit = min(max_limit, limit)
    skip = (page - 1) * limit
    return page, limit, skip


def contains_pattern(term):
    """LIKE pattern matching term as a literal substring, for ilike(..., escape='\\')"""
    escaped = term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f"%{escaped}%"


def run_cleanup_steps(steps, source):
    """
    Run (label, callable) deletion steps in order, committing each one.

    A failing step is rolled back and logged, and the remaining steps still
    run. Returns the labels of the steps that failed.
    """
    from .logging_service import db_log

    failed = []
    for label, step in steps:
        try:
            step()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            failed.append(label)
            logger.warning("Cleanup step '%s' failed: %s", label, e)
            db_log('warning', source, f"Cleanup step '{label}' failed", {'error': str(e)})
    return failed


def pagination_payload(total_count, page, limit):
    return {
        'totalCount': total_count,
        'totalPages': math.ceil(total_count / limit) if limit else 0,
        'currentPage': page,
    }
