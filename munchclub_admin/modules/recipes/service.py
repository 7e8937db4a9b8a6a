# munchclub_admin/modules/recipes/service.py
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from ...core.database import db, to_iso, parse_pagination_params, pagination_payload
from ...core.errors import InvalidArgument, NotFound, PersistenceError
from ...core.logging_service import db_log
from ...core.models import Recipe

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
UNKNOWN_AUTHOR = {'id': 'unknown', 'name': 'Unknown User', 'email': 'unknown@example.com'}

# request field -> column
EDITABLE_FIELDS = {
    'title': 'title',
    'description': 'description',
    'image': 'image',
    'feeds': 'feeds',
    'mealType': 'meal_type',
    'cookingTime': 'cooking_time',
    'ingredients': 'ingredients',
    'dietTypes': 'diet_types',
    'instructions': 'instruction',
    'isShared': 'is_shared',
}


def _recipe_row(recipe):
    user = recipe.user
    return {
        'id': recipe.id,
        'title': recipe.title,
        'description': recipe.description,
        'image': recipe.image,
        'feeds': recipe.feeds,
        'mealType': recipe.meal_type,
        'cookingTime': recipe.cooking_time,
        'ingredients': recipe.ingredients or [],
        'dietTypes': recipe.diet_types or [],
        'isShared': bool(recipe.is_shared),
        'isCopied': bool(recipe.is_copied),
        'createdAt': to_iso(recipe.created_at),
        'updatedAt': to_iso(recipe.updated_at),
        'author': {'id': user.id, 'name': user.name, 'email': user.email} if user else dict(UNKNOWN_AUTHOR),
        'book': {'id': recipe.book.id, 'title': recipe.book.title} if recipe.book else None,
    }


def _recipe_detail(recipe):
    data = _recipe_row(recipe)
    data['instructions'] = recipe.instruction or ''
    return data


def _recipe_query():
    return Recipe.query.options(joinedload(Recipe.user), joinedload(Recipe.book))


def _get_recipe(recipe_id):
    if not recipe_id:
        raise InvalidArgument('Recipe ID is required')
    recipe = _recipe_query().filter(Recipe.id == recipe_id).one_or_none()
    if recipe is None:
        raise NotFound('Recipe not found')
    return recipe


def list_recipes(args):
    """Newest recipes first; the shared/copied/image stats cover the returned page"""
    page, limit, skip = parse_pagination_params(args, default_limit=DEFAULT_LIMIT, max_limit=MAX_LIMIT)

    recipes = (
        _recipe_query()
        .order_by(Recipe.created_at.desc(), Recipe.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    total_count = Recipe.query.count()
    rows = [_recipe_row(recipe) for recipe in recipes]

    return {
        'recipes': rows,
        'pagination': pagination_payload(total_count, page, limit),
        'stats': {
            'totalRecipes': total_count,
            'sharedRecipes': sum(1 for row in rows if row['isShared']),
            'copiedRecipes': sum(1 for row in rows if row['isCopied']),
            'recipesWithImages': sum(1 for row in rows if row['image']),
        },
    }


def get_recipe(recipe_id):
    return {'recipe': _recipe_detail(_get_recipe(recipe_id))}


def _commit(action, recipe_id):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error trying to {action} recipe {recipe_id}: {e}")
        db_log('error', 'recipes', f'Failed to {action} recipe', {'recipe_id': recipe_id, 'error': str(e)})
        raise PersistenceError(f'Failed to {action} recipe') from e


def update_recipe(recipe_id, data):
    """Apply the editable fields present in data; absent fields are left alone"""
    recipe = _get_recipe(recipe_id)
    for field, column in EDITABLE_FIELDS.items():
        if field in data:
            setattr(recipe, column, data[field])

    _commit('update', recipe_id)
    return {'recipe': _recipe_detail(_get_recipe(recipe_id))}


def delete_recipe(recipe_id):
    recipe = _get_recipe(recipe_id)
    db.session.delete(recipe)
    _commit('delete', recipe_id)
    db_log('info', 'recipes', f"Deleted recipe {recipe_id}")
    return {'success': True}
