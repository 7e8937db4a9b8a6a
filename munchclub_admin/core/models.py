"""
Relational schema for the admin backend.

Ids are opaque strings (24-hex ObjectId style), except for the join and
audit tables whose integer ids double as insertion order.
"""

from .database import db, new_id, utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True, index=True)
    image = db.Column(db.String(1024), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    books = db.relationship("Book", back_populates="user", lazy=True)
    recipes = db.relationship("Recipe", back_populates="user", lazy=True)
    orders = db.relationship("Order", back_populates="user", lazy=True)


class Session(db.Model):
    __tablename__ = "sessions"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)
    session_token = db.Column(db.String(255), nullable=False, default=new_id)
    expires = db.Column(db.DateTime, nullable=True)


class Account(db.Model):
    __tablename__ = "accounts"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)
    provider = db.Column(db.String(64), nullable=False)
    provider_account_id = db.Column(db.String(255), nullable=False)


class Communication(db.Model):
    __tablename__ = "communications"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=False, index=True)
    channel = db.Column(db.String(32), nullable=True)
    content = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class Book(db.Model):
    __tablename__ = "books"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(1024), nullable=True)
    cover_color = db.Column(db.String(32), nullable=True)
    chef_name = db.Column(db.String(255), nullable=True)
    type = db.Column(db.String(32), nullable=False, default="Layflat")
    dedication = db.Column(db.Text, nullable=True)
    dedication_image = db.Column(db.String(1024), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="books")
    recipes = db.relationship("Recipe", back_populates="book", lazy=True, order_by="Recipe.created_at")
    basket_items = db.relationship("BasketItem", back_populates="book", lazy=True)


class Recipe(db.Model):
    __tablename__ = "recipes"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True, index=True)
    book_id = db.Column(db.String(64), db.ForeignKey("books.id", ondelete="SET NULL"), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=True)
    image = db.Column(db.String(1024), nullable=True)
    feeds = db.Column(db.String(32), nullable=True)
    meal_type = db.Column(db.String(64), nullable=True)
    cooking_time = db.Column(db.String(64), nullable=True)
    ingredients = db.Column(db.JSON, nullable=False, default=list)
    diet_types = db.Column(db.JSON, nullable=False, default=list)
    instruction = db.Column(db.Text, nullable=True)
    is_shared = db.Column(db.Boolean, nullable=False, default=False)
    is_copied = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="recipes")
    book = db.relationship("Book", back_populates="recipes")


class TypePrice(db.Model):
    """Price tier for a book format"""
    __tablename__ = "type_prices"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    type = db.Column(db.String(32), nullable=False)
    price = db.Column(db.Float, nullable=False, default=0)


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    user_id = db.Column(db.String(64), db.ForeignKey("users.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    order_status = db.Column(db.String(32), nullable=False, default="PENDING", index=True)

    # Fulfillment: printer-order-ids and the cache of the last successful poll
    printer_order_ids = db.Column(db.JSON, nullable=False, default=list)
    printer_status = db.Column(db.String(64), nullable=True)
    tracking_number = db.Column(db.String(128), nullable=True)
    estimated_delivery = db.Column(db.DateTime, nullable=True)
    printer_error_message = db.Column(db.Text, nullable=True)
    printer_updated_at = db.Column(db.DateTime, nullable=True)

    messages = db.Column(db.JSON, nullable=True)
    purchased_books = db.Column(db.JSON, nullable=True)
    is_multiple_address = db.Column(db.Boolean, nullable=False, default=False)

    user = db.relationship("User", back_populates="orders")
    basket_items = db.relationship(
        "BasketItem", back_populates="order", lazy=True,
        order_by=lambda: (BasketItem.created_at, BasketItem.id)
    )
    payment = db.relationship("Payment", back_populates="order", uselist=False, lazy=True)
    order_shippings = db.relationship(
        "OrderShipping", back_populates="order", lazy=True, order_by="OrderShipping.id"
    )
    status_history = db.relationship(
        "OrderStatusHistory", back_populates="order", lazy=True,
        order_by=lambda: (OrderStatusHistory.timestamp.desc(), OrderStatusHistory.id.desc())
    )


class BasketItem(db.Model):
    __tablename__ = "basket_items"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    order_id = db.Column(db.String(64), db.ForeignKey("orders.id"), nullable=True, index=True)
    book_id = db.Column(db.String(64), db.ForeignKey("books.id", ondelete="SET NULL"), nullable=True, index=True)
    type_price_id = db.Column(db.String(64), db.ForeignKey("type_prices.id"), nullable=True)
    type = db.Column(db.String(32), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    cover_url = db.Column(db.String(1024), nullable=True)
    content_url = db.Column(db.String(1024), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="basket_items")
    book = db.relationship("Book", back_populates="basket_items")
    type_price = db.relationship("TypePrice")


class Payment(db.Model):
    __tablename__ = "payments"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    order_id = db.Column(db.String(64), db.ForeignKey("orders.id"), nullable=False, unique=True)
    amount = db.Column(db.Float, nullable=False, default=0)
    stripe_payment_id = db.Column(db.String(255), nullable=True)
    # PENDING, SUCCESSFUL, FAILED, REFUNDED
    payment_status = db.Column(db.String(16), nullable=False, default="PENDING", index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="payment")


class ShippingAddress(db.Model):
    __tablename__ = "shipping_addresses"

    id = db.Column(db.String(64), primary_key=True, default=new_id)
    first_name = db.Column(db.String(128), nullable=True)
    last_name = db.Column(db.String(128), nullable=True)
    address_line1 = db.Column(db.String(255), nullable=True)
    address_line2 = db.Column(db.String(255), nullable=True)
    town = db.Column(db.String(128), nullable=True)
    county = db.Column(db.String(128), nullable=True)
    post_code = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(64), nullable=True)


class OrderShipping(db.Model):
    __tablename__ = "order_shippings"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id = db.Column(db.String(64), db.ForeignKey("orders.id"), nullable=False, index=True)
    shipping_address_id = db.Column(db.String(64), db.ForeignKey("shipping_addresses.id"), nullable=False)

    order = db.relationship("Order", back_populates="order_shippings")
    shipping_address = db.relationship("ShippingAddress")


class OrderStatusHistory(db.Model):
    """Append-only audit trail of order status transitions"""
    __tablename__ = "order_status_history"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id = db.Column(db.String(64), db.ForeignKey("orders.id"), nullable=False, index=True)
    status = db.Column(db.String(64), nullable=False)
    message = db.Column(db.JSON, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="status_history")
