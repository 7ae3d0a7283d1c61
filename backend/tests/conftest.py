"""
Pytest fixtures for Set Aside backend tests.

Provides an in-memory database, the test client, users for every role,
catalog products and bearer-token headers.
"""

import shutil
import tempfile
from decimal import Decimal

import pytest
from setaside import create_app
from setaside.config import Config
from setaside.extensions import db
from setaside.models import Product, ROLE_ADMIN, ROLE_CASHIER, ROLE_CUSTOMER
from setaside.services.auth_service import create_user
from setaside.services.token_service import create_access_token

API = "/api/v1"
PASSWORD = "Password123"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET = "test-jwt-secret"
    JWT_EXPIRES_IN = "7d"
    BCRYPT_SALT_ROUNDS = 4
    API_PREFIX = "api/v1"
    UPLOAD_FOLDER = None


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    upload_dir = tempfile.mkdtemp(prefix="setaside-images-")
    TestConfig.UPLOAD_FOLDER = upload_dir
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()

    shutil.rmtree(upload_dir, ignore_errors=True)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(email: str, role: str = ROLE_CUSTOMER, full_name: str = "Test User", is_active: bool = True):
    user = create_user(email=email, password=PASSWORD, full_name=full_name, role=role)
    if not is_active:
        user.is_active = False
        db.session.commit()
    return user


def make_product(name: str = "Latte", price: str = "4.50", stock_quantity=10, **kwargs) -> Product:
    product = Product(
        name=name,
        price=Decimal(price),
        stock_quantity=stock_quantity,
        is_available=kwargs.pop("is_available", True),
        **kwargs,
    )
    db.session.add(product)
    db.session.commit()
    return product


def auth_headers(user) -> dict:
    """Helper to create Authorization headers for a user."""
    return {'Authorization': f'Bearer {create_access_token(user).access_token}'}


@pytest.fixture(scope='function')
def customer(db_session):
    return make_user("customer@example.com", full_name="Casey Customer")


@pytest.fixture(scope='function')
def other_customer(db_session):
    return make_user("other@example.com", full_name="Olive Other")


@pytest.fixture(scope='function')
def cashier(db_session):
    return make_user("cashier@example.com", role=ROLE_CASHIER, full_name="Cody Cashier")


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user("admin@example.com", role=ROLE_ADMIN, full_name="Ada Admin")


@pytest.fixture(scope='function')
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture(scope='function')
def other_customer_headers(other_customer):
    return auth_headers(other_customer)


@pytest.fixture(scope='function')
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture(scope='function')
def latte(db_session):
    return make_product("Latte", "4.50", stock_quantity=10, category="Coffee")


@pytest.fixture(scope='function')
def bagel(db_session):
    return make_product("Bagel", "2.25", stock_quantity=None, category="Bakery")


@pytest.fixture(scope='function')
def place_order(client):
    """Create an order through the API and return its JSON body."""
    def _place(headers, items=None, **fields):
        payload = dict(fields)
        if items is not None:
            payload["items"] = items
        resp = client.post(f"{API}/orders", json=payload, headers=headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()
    return _place
