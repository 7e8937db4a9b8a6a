"""
Shared fixtures: a fully initialised app per test, backed by a temporary
SQLite database, a temporary log database and an in-memory coupon store.
"""

import os
import shutil
import tempfile
from datetime import datetime, timedelta

import mongomock
import pytest
from flask import Flask

from munchclub_admin import MunchclubAdmin
from munchclub_admin.core.database import db
from munchclub_admin.core.document_store import CouponStore
from munchclub_admin.core.models import (
    BasketItem, Book, Order, OrderShipping, Payment, Recipe, ShippingAddress, TypePrice, User
)

PRINTER_GATEWAY_URL = "http://printer.test/api/printer"


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="munchclub-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def coupon_store(mongo_client):
    return CouponStore(client=mongo_client, db_name="munchclub_test")


def make_app(tmp_db_dir, config=None):
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir
    app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(tmp_db_dir, "munchclub.db")
    app.config["LOG_DB"] = os.path.join(tmp_db_dir, "app_logs.db")
    app.config["PRINTER_GATEWAY_URL"] = PRINTER_GATEWAY_URL
    app.config["PRINTER_API_TIMEOUT"] = 10
    admin = MunchclubAdmin(app, config)
    return app, admin


@pytest.fixture
def app(tmp_db_dir, coupon_store):
    """Fully initialised Flask app with all admin modules registered."""
    app, _ = make_app(tmp_db_dir, {"coupon_store": coupon_store})
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app):
    """App context for tests that talk to the services directly."""
    with app.app_context():
        yield


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------

def add_user(name="Ada Baker", email="ada@example.com", **kwargs):
    user = User(name=name, email=email, **kwargs)
    db.session.add(user)
    db.session.commit()
    return user


def add_book(user=None, title="Family Favourites", recipes=0, **kwargs):
    book = Book(user_id=user.id if user else None, title=title, **kwargs)
    db.session.add(book)
    db.session.flush()
    for i in range(recipes):
        db.session.add(Recipe(
            user_id=user.id if user else None,
            book_id=book.id,
            title=f"Recipe {i + 1}",
            created_at=datetime(2024, 1, 1) + timedelta(minutes=i),
        ))
    db.session.commit()
    return book


def add_order(user=None, books=(), amount=None, payment_status="SUCCESSFUL", address=None,
              printer_order_ids=None, created_at=None, **kwargs):
    """Order with one basket item per book (quantity 1, Layflat tier) and optional payment/address."""
    order = Order(
        user_id=user.id if user else None,
        printer_order_ids=list(printer_order_ids or []),
        created_at=created_at or datetime(2024, 3, 1, 12, 0, 0),
        **kwargs
    )
    db.session.add(order)
    db.session.flush()

    if books:
        tier = TypePrice(type="Layflat", price=29.99)
        db.session.add(tier)
        db.session.flush()
        for i, book in enumerate(books):
            db.session.add(BasketItem(
                order_id=order.id,
                book_id=book.id if book is not None else None,
                type_price_id=tier.id,
                type="Layflat",
                quantity=1,
                created_at=datetime(2024, 3, 1) + timedelta(seconds=i),
            ))

    if amount is not None:
        db.session.add(Payment(
            order_id=order.id,
            amount=amount,
            stripe_payment_id="pi_test_123",
            payment_status=payment_status,
        ))

    if address is not None:
        shipping = ShippingAddress(**address)
        db.session.add(shipping)
        db.session.flush()
        db.session.add(OrderShipping(order_id=order.id, shipping_address_id=shipping.id))

    db.session.commit()
    return order
