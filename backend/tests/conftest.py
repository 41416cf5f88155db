"""
Pytest fixtures for the boutique backend tests.

Provides the Flask app on an in-memory database, a seeded shop state and
an action facade with a fixed clock.
"""

from datetime import datetime

import pytest

from boutique import create_app
from boutique.config import Config
from boutique.extensions import db
from boutique.models import (
    Client,
    Product,
    ProductVariant,
    ShopState,
    Supplier,
)
from boutique.services import auth_service
from boutique.store import ShopStore
from boutique.store.facade import ShopActions


NOW = datetime(2026, 3, 11, 10, 30)


class ShopTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BOUTIQUE_DATA_KEY = "appState"
    CORS_ALLOWED_ORIGINS = ("http://localhost:5173",)


@pytest.fixture(autouse=True)
def fast_pin_hashing(monkeypatch):
    """bcrypt at full cost makes every user fixture slow."""
    monkeypatch.setattr(auth_service, "PIN_HASH_ROUNDS", 4)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(ShopTestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def seeded_state():
    """
    A small catalogue:
    - p1: plain product, 1000 FCFA, 10 in stock, supplied by sup1
    - p2: bag with two size/color variants (3 + 2 in stock)
    - c1: one client
    """
    return ShopState(
        products=(
            Product(
                id="p1", name="Robe wax", sku="RW-1", category="Vêtements", supplier_id="sup1",
                purchase_price=600, selling_price=1000, stock=10, alert_threshold=2,
            ),
            Product(
                id="p2", name="Sac cuir", sku="SC-1", category="Accessoires", supplier_id="sup1",
                purchase_price=3000, selling_price=5000, stock=5, alert_threshold=1,
                variants=(
                    ProductVariant(quantity=3, size="M", color="Rouge"),
                    ProductVariant(quantity=2, size="L", color="Bleu"),
                ),
            ),
        ),
        clients=(Client(id="c1", first_name="Awa", last_name="Diallo", phone="+221 77 000 00 00"),),
        suppliers=(Supplier(id="sup1", company_name="Tissus Dakar", contact_person="Moussa"),),
    )


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store(seeded_state):
    return ShopStore(seeded_state)


@pytest.fixture
def shop(store):
    return ShopActions(store, clock=lambda: NOW)


@pytest.fixture
def line():
    """Build an order line dict the way the point of sale sends it."""
    def _line(product_id="p1", quantity=1, price=1000, size=None, color=None):
        data = {"productId": product_id, "quantity": quantity, "price": price}
        if size is not None:
            data["size"] = size
        if color is not None:
            data["color"] = color
        return data
    return _line
