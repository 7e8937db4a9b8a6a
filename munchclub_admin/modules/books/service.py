# munchclub_admin/modules/books/service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from ...core.database import db, to_iso
from ...core.errors import InvalidArgument, NotFound, PersistenceError
from ...core.logging_service import db_log
from ...core.models import Book

logger = logging.getLogger(__name__)

DEFAULT_BOOK_TYPE = 'Layflat'
PREMIUM_BOOK_TYPE = 'Premium'

# request field -> column
EDITABLE_FIELDS = {
    'title': 'title',
    'description': 'description',
    'image': 'image',
    'coverColor': 'cover_color',
    'chefName': 'chef_name',
    'type': 'type',
    'dedication': 'dedication',
    'dedicationImage': 'dedication_image',
}


def _author(user):
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'email': user.email}


def _book_row(book):
    return {
        'id': book.id,
        'title': book.title,
        'description': book.description,
        'image': book.image,
        'coverColor': book.cover_color,
        'chefName': book.chef_name,
        'type': book.type,
        'createdAt': to_iso(book.created_at),
        'updatedAt': to_iso(book.created_at),
        'author': _author(book.user),
        'recipeCount': len(book.recipes),
        'orderCount': len(book.basket_items),
    }


def _book_detail(book):
    data = _book_row(book)
    data['dedication'] = book.dedication
    data['dedicationImage'] = book.dedication_image
    data['recipes'] = [
        {
            'id': recipe.id,
            'title': recipe.title,
            'image': recipe.image,
            'mealType': recipe.meal_type,
            'cookingTime': recipe.cooking_time,
            'feeds': recipe.feeds,
            'isShared': recipe.is_shared,
            'createdAt': to_iso(recipe.created_at),
        }
        for recipe in book.recipes
    ]
    return data


def _book_query():
    return Book.query.options(
        joinedload(Book.user),
        selectinload(Book.recipes),
        selectinload(Book.basket_items),
    )


def _get_book(book_id):
    if not book_id:
        raise InvalidArgument('Book ID is required')
    book = _book_query().filter(Book.id == book_id).one_or_none()
    if book is None:
        raise NotFound('Book not found')
    return book


def list_books():
    """Every book whose owner still exists, newest first"""
    books = _book_query().order_by(Book.created_at.desc(), Book.id).all()
    rows = [_book_row(book) for book in books if book.user is not None]

    return {
        'books': rows,
        'stats': {
            'totalBooks': len(rows),
            'totalRecipes': sum(row['recipeCount'] for row in rows),
            'totalOrders': sum(row['orderCount'] for row in rows),
            'premiumBooks': sum(1 for row in rows if row['type'] == PREMIUM_BOOK_TYPE),
        },
    }


def get_book(book_id):
    return {'book': _book_detail(_get_book(book_id))}


def _commit(action, book_id=None):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error trying to {action} book {book_id or ''}: {e}")
        db_log('error', 'books', f'Failed to {action} book', {'book_id': book_id, 'error': str(e)})
        raise PersistenceError(f'Failed to {action} book') from e


def create_book(data):
    title = (data.get('title') or '').strip()
    if not title:
        raise InvalidArgument('Title is required')

    book = Book(user_id=data.get('userId') or None, title=title)
    for field, column in EDITABLE_FIELDS.items():
        if field != 'title' and field in data:
            setattr(book, column, data[field])
    if not book.type:
        book.type = DEFAULT_BOOK_TYPE

    db.session.add(book)
    _commit('create')
    db_log('info', 'books', f"Created book {book.id}")
    return {'book': _book_detail(_get_book(book.id))}


def update_book(book_id, data):
    """Apply the editable fields present in data; absent fields are left alone"""
    book = _get_book(book_id)
    for field, column in EDITABLE_FIELDS.items():
        if field in data:
            setattr(book, column, data[field])
    if not book.type:
        book.type = DEFAULT_BOOK_TYPE

    _commit('update', book_id)
    return {'book': _book_detail(_get_book(book_id))}


def delete_book(book_id):
    """Delete a book; its recipes and basket items stay, detached from it"""
    book = _get_book(book_id)
    db.session.delete(book)
    _commit('delete', book_id)
    db_log('info', 'books', f"Deleted book {book_id}")
    return {'success': True}
