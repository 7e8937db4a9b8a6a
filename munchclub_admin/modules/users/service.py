# munchclub_admin/modules/users/service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ...core.database import db, to_iso, parse_pagination_params, pagination_payload, run_cleanup_steps
from ...core.errors import InvalidArgument, PersistenceError
from ...core.logging_service import db_log
from ...core.models import Account, Book, Communication, Recipe, Session, User

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _user_row(user):
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'image': user.image,
        'createdAt': to_iso(user.created_at),
        'updatedAt': to_iso(user.updated_at),
        'orderCount': len(user.orders),
        'bookCount': len(user.books),
        'recipeCount': len(user.recipes),
    }


def list_users(args):
    """Newest users first, with per-user counts; stats cover the returned page"""
    page, limit, skip = parse_pagination_params(args, default_limit=DEFAULT_LIMIT, max_limit=MAX_LIMIT)

    users = (
        User.query
        .options(selectinload(User.orders), selectinload(User.books), selectinload(User.recipes))
        .order_by(User.created_at.desc(), User.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    total_count = User.query.count()
    rows = [_user_row(user) for user in users]

    return {
        'users': rows,
        'pagination': pagination_payload(total_count, page, limit),
        'stats': {
            'totalUsers': total_count,
            'totalBooks': sum(row['bookCount'] for row in rows),
            'totalRecipes': sum(row['recipeCount'] for row in rows),
            'totalOrders': sum(row['orderCount'] for row in rows),
        },
    }


def _delete_where(model, user_id):
    return lambda: model.query.filter_by(user_id=user_id).delete(synchronize_session=False)


def delete_user(user_id):
    """
    Remove a user and what they own.

    Sessions, accounts, books, recipes and communications are cleaned up in
    that order, each step best-effort. Deleting an already missing user
    succeeds.
    """
    if not user_id:
        raise InvalidArgument('User ID is required')

    failed = run_cleanup_steps([
        ('sessions', _delete_where(Session, user_id)),
        ('accounts', _delete_where(Account, user_id)),
        ('books', _delete_where(Book, user_id)),
        ('recipes', _delete_where(Recipe, user_id)),
        ('communications', _delete_where(Communication, user_id)),
    ], source='users')

    try:
        User.query.filter_by(id=user_id).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error deleting user {user_id}: {e}")
        raise PersistenceError('Failed to delete user') from e

    db_log('info', 'users', f"Deleted user {user_id}", {'skipped_steps': failed} if failed else None)
    return {'success': True}
