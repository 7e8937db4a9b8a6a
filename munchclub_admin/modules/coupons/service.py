# munchclub_admin/modules/coupons/service.py
import logging
import math
import re
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError

from ...core.errors import InvalidArgument, NotFound, PersistenceError
from ...core.logging_service import db_log

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
SEARCH_FIELDS = ('couponCode', 'purchaserEmail', 'recipientEmail', 'purchaserName', 'recipientName')


def _now():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _object_id(coupon_id):
    try:
        return ObjectId(coupon_id)
    except (InvalidId, TypeError) as e:
        raise InvalidArgument('Invalid coupon ID') from e


def serialize_document(value):
    """ObjectIds to strings and datetimes to ISO strings, recursively"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value


def search_filter(q):
    """Case-insensitive literal substring match over the coupon's people and code"""
    if not q:
        return {}
    pattern = re.escape(q)
    return {'$or': [{field: {'$regex': pattern, '$options': 'i'}} for field in SEARCH_FIELDS]}


def redeem_coupon(store, coupon_id):
    """
    Mark a coupon as redeemed and stamp redeemedAt.

    Redeeming an already redeemed coupon succeeds again and moves redeemedAt
    to the latest call.
    """
    if not coupon_id:
        raise InvalidArgument('Coupon ID is required')
    object_id = _object_id(coupon_id)

    try:
        result = store.coupons.update_one(
            {'_id': object_id},
            {'$set': {'redeemed': True, 'redeemedAt': _now()}}
        )
    except PyMongoError as e:
        logger.error(f"Error redeeming coupon {coupon_id}: {e}")
        db_log('error', 'coupons', f'Failed to redeem coupon {coupon_id}', {'error': str(e)})
        raise PersistenceError('Failed to update coupon') from e

    if result.matched_count == 0:
        raise NotFound('Coupon not found')

    db_log('info', 'coupons', f'Coupon {coupon_id} redeemed')
    return {'success': True}


def _total_value(collection, query):
    rows = list(collection.aggregate([
        {'$match': query},
        {'$group': {'_id': None, 'total': {'$sum': '$amount'}}},
    ]))
    return rows[0]['total'] if rows and rows[0].get('total') else 0


def list_coupons(store, q='', page=1, limit=DEFAULT_LIMIT):
    """
    One page of coupons, newest first, plus stats over every match.

    limit is capped at MAX_LIMIT and page floors at 1.
    """
    page = max(1, int(page or 1))
    limit = min(MAX_LIMIT, max(1, int(limit or DEFAULT_LIMIT)))
    skip = (page - 1) * limit
    query = search_filter((q or '').strip())

    try:
        collection = store.coupons
        total_count = collection.count_documents(query)
        items = list(
            collection.find(query)
            .sort('timestamp', -1)
            .skip(skip)
            .limit(limit)
        )
        redeemed_count = collection.count_documents({**query, 'redeemed': True})
        total_value = _total_value(collection, query)
    except PyMongoError as e:
        logger.error(f"Error fetching coupons: {e}")
        db_log('error', 'coupons', 'Failed to fetch coupons', {'error': str(e)})
        raise PersistenceError('Failed to fetch coupons') from e

    return {
        'data': [serialize_document(item) for item in items],
        'pagination': {
            'totalCount': total_count,
            'totalPages': math.ceil(total_count / limit),
            'currentPage': page,
            'limit': limit,
        },
        'stats': {
            'totalCoupons': total_count,
            'redeemedCoupons': redeemed_count,
            'activeCoupons': total_count - redeemed_count,
            'totalValue': total_value,
        },
    }
