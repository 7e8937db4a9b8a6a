"""
Order Projections
=================

Read-only, denormalized views of an order for the admin UI.

get_order_detail() joins the order with its user, basket items (book,
recipe count, price tier), payment, first shipping address and status
history. Every optional piece of source data has a default, so a deleted
book or a missing payment never turns into an error.

Positional policies:
- only the first shipping-address association (insertion order) is shown,
  even when the order ships to several addresses;
- printerStatus is always reported as the default "PENDING" here; only
  /printer-status refreshes and persists the cached printer fields.
"""

import logging
import math

from sqlalchemy.orm import joinedload, selectinload

from ...core.database import to_iso
from ...core.errors import InvalidArgument, NotFound
from ...core.models import BasketItem, Book, Order, OrderShipping

logger = logging.getLogger(__name__)

DEFAULT_PRINTER_STATUS = 'PENDING'
UNKNOWN_BOOK = 'Unknown Book'
UNKNOWN_TYPE = 'Unknown'
FILE_URL_MESSAGE_TYPES = ('file_urls', 'printer_files')


def calculate_total_book_pages(number_of_recipes):
    """
    Printed page count for a book with the given number of recipes.

    16 fixed pages, two pages per recipe, and extra pages once the recipe
    list (14 entries per page) runs past two pages.
    """
    default_pages = 16
    recipe_pages = number_of_recipes * 2
    recipe_list_page_count = math.ceil(number_of_recipes / 14)

    if recipe_list_page_count <= 2:
        additional_pages = 0
    elif recipe_list_page_count <= 4:
        additional_pages = 2
    else:
        additional_pages = 4 + math.ceil((recipe_list_page_count - 5) / 2) * 2

    return default_pages + recipe_pages + additional_pages


def order_query():
    """Order query with every relation the projections read eagerly loaded"""
    return Order.query.options(
        joinedload(Order.user),
        selectinload(Order.basket_items).joinedload(BasketItem.book).selectinload(Book.recipes),
        selectinload(Order.basket_items).joinedload(BasketItem.type_price),
        joinedload(Order.payment),
        selectinload(Order.order_shippings).joinedload(OrderShipping.shipping_address),
        selectinload(Order.status_history),
    )


def _fallback_file_urls(messages):
    """Per-item file URLs recorded in a file_urls/printer_files message"""
    for msg in messages or []:
        if isinstance(msg, dict) and msg.get('type') in FILE_URL_MESSAGE_TYPES:
            file_urls = msg.get('fileUrls') or []
            return file_urls if isinstance(file_urls, list) else []
    return []


def _history_note(message):
    if isinstance(message, dict) and 'note' in message:
        return message.get('note') or ''
    return ''


def _recipe_count(book):
    return len(book.recipes) if book is not None else 0


def _item_price(item):
    if item.type_price is not None and item.type_price.price:
        return item.type_price.price
    return 0


def _line_item(order, item, fallback):
    book = item.book
    recipe_count = _recipe_count(book)
    if not isinstance(fallback, dict):
        fallback = {}

    return {
        'id': item.id,
        'productId': book.id if book is not None else '',
        'productName': (book.title if book is not None else None) or UNKNOWN_BOOK,
        'quantity': item.quantity,
        'price': _item_price(item),
        'pages': calculate_total_book_pages(recipe_count),
        'recipes': recipe_count,
        'type': item.type or UNKNOWN_TYPE,
        'coverUrl': (item.cover_url or fallback.get('cover')
                     or fallback.get('coverPdf') or fallback.get('coverUrl')),
        'contentUrl': (item.content_url or fallback.get('text')
                       or fallback.get('textPdf') or fallback.get('textUrl')),
        'jobReference': f"{order.id}-{item.id}",
    }


def _shipping_address(order):
    address = order.order_shippings[0].shipping_address if order.order_shippings else None
    if address is None:
        return {
            'firstName': None, 'lastName': None, 'addressLine1': None, 'addressLine2': None,
            'town': None, 'county': None, 'postCode': None, 'country': None,
        }
    return {
        'firstName': address.first_name,
        'lastName': address.last_name,
        'addressLine1': address.address_line1,
        'addressLine2': address.address_line2 or None,
        'town': address.town,
        'county': address.county,
        'postCode': address.post_code,
        'country': address.country,
    }


def _payment(payment, include_processor_id=True):
    data = {
        'id': payment.id,
        'status': payment.payment_status,
        'amount': payment.amount,
    }
    if include_processor_id:
        data['stripePaymentId'] = payment.stripe_payment_id
    return data


def _user_fields(order):
    user = order.user
    if user is None:
        logger.warning("Order %s references missing user %s", order.id, order.user_id)
        return '', ''
    return user.name or '', user.email or ''


def _summary(order):
    if order.basket_items:
        counts = [_recipe_count(item.book) for item in order.basket_items]
        return {
            'totalItems': len(order.basket_items),
            'totalQuantity': sum(item.quantity or 0 for item in order.basket_items),
            'totalRecipes': sum(counts),
            'totalPages': sum(calculate_total_book_pages(count) for count in counts),
        }

    purchased = order.purchased_books
    if isinstance(purchased, list) and purchased:
        entries = [entry for entry in purchased if isinstance(entry, dict)]
        return {
            'totalItems': len(purchased),
            'totalQuantity': sum(entry.get('quantity') or 0 for entry in entries),
            'totalRecipes': sum(entry.get('numberOfRecipes') or 0 for entry in entries),
            'totalPages': sum(entry.get('pages') or 0 for entry in entries),
        }

    return {'totalItems': 0, 'totalQuantity': 0, 'totalRecipes': 0, 'totalPages': 0}


def build_order_detail(order):
    """Project a loaded Order into the order detail contract"""
    user_name, user_email = _user_fields(order)
    fallback_urls = _fallback_file_urls(order.messages)

    items = []
    for index, item in enumerate(order.basket_items):
        fallback = fallback_urls[index] if index < len(fallback_urls) else None
        items.append(_line_item(order, item, fallback))

    detail = {
        'id': order.id,
        'userId': order.user_id,
        'userName': user_name,
        'userEmail': user_email,
        'items': items,
        'total': order.payment.amount if order.payment is not None and order.payment.amount else 0,
        'status': order.order_status,
        'createdAt': to_iso(order.created_at),
        # Order has no update timestamp; createdAt stands in until one exists
        'updatedAt': to_iso(order.created_at),
        'shippingAddress': _shipping_address(order),
        'printerOrderIds': list(order.printer_order_ids or []),
        'printerStatus': DEFAULT_PRINTER_STATUS,
        'orderStatusHistory': [
            {
                'status': entry.status,
                'timestamp': to_iso(entry.timestamp),
                'note': _history_note(entry.message),
            }
            for entry in order.status_history
        ],
        'messages': order.messages or [],
        'purchasedBooks': order.purchased_books,
        'isMultipleAddress': bool(order.is_multiple_address),
        'summary': _summary(order),
    }

    if order.payment is not None:
        detail['payment'] = _payment(order.payment)

    return detail


def get_order_detail(order_id):
    """Load and project one order. Raises InvalidArgument or NotFound."""
    if not order_id or not str(order_id).strip():
        raise InvalidArgument('Order ID is required')

    order = order_query().filter(Order.id == order_id).one_or_none()
    if order is None:
        raise NotFound('Order not found')

    return build_order_detail(order)


def build_order_summary(order):
    """Lighter row used by the order list"""
    user_name, user_email = _user_fields(order)

    if order.basket_items:
        items = [
            {
                'id': item.id,
                'productId': item.book.id if item.book is not None else '',
                'productName': (item.book.title if item.book is not None else None) or UNKNOWN_BOOK,
                'quantity': item.quantity,
                'price': _item_price(item),
            }
            for item in order.basket_items
        ]
    elif isinstance(order.purchased_books, list):
        items = [
            {
                'id': f"book-{index}",
                'productId': book.get('bookId') or '',
                'productName': book.get('title') or UNKNOWN_BOOK,
                'quantity': book.get('quantity') or 1,
                'price': book.get('price') or 0,
            }
            for index, book in enumerate(order.purchased_books)
            if isinstance(book, dict)
        ]
    else:
        items = []

    summary = {
        'id': order.id,
        'userId': order.user_id,
        'userName': user_name,
        'userEmail': user_email,
        'items': items,
        'total': order.payment.amount if order.payment is not None and order.payment.amount else 0,
        'status': order.order_status,
        'createdAt': to_iso(order.created_at),
        'updatedAt': to_iso(order.created_at),
        'shippingAddress': _shipping_address(order),
        'printerOrderIds': list(order.printer_order_ids or []),
    }
    if order.payment is not None:
        summary['payment'] = _payment(order.payment, include_processor_id=False)
    return summary
