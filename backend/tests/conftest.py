"""
Pytest fixtures for shop backend tests.

Provides test database setup, admin/worker/product fixtures, and test client.
"""

import pytest
from shopdesk import create_app
from shopdesk.extensions import db
from shopdesk.models import AdminUser, Product, Vendor, Worker
from shopdesk.models.auth import (
    CAPABILITY_PRODUCTS,
    CAPABILITY_SALES,
    ROLE_ADMIN,
    ROLE_SUPERADMIN,
)
from shopdesk.services import stock_service
from shopdesk.services.auth_service import hash_password


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_RETRY_ATTEMPTS': 3,
    })

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
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash(app):
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(PASSWORD)


def make_admin(db_session, password_hash, *, email, role=ROLE_ADMIN, capabilities=(), is_active=True):
    admin = AdminUser(
        name=email.split("@")[0].title(),
        email=email,
        password_hash=password_hash,
        role=role,
        is_verified=True,
        is_active=is_active,
    )
    admin.set_capabilities(capabilities)
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture(scope='function')
def superadmin(db_session, password_hash):
    return make_admin(db_session, password_hash, email="owner@shop.test", role=ROLE_SUPERADMIN)


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    """Admin with the default signup capabilities (products, sales)."""
    return make_admin(
        db_session,
        password_hash,
        email="clerk@shop.test",
        capabilities=(CAPABILITY_PRODUCTS, CAPABILITY_SALES),
    )


@pytest.fixture(scope='function')
def bare_admin(db_session, password_hash):
    """Admin without any capability."""
    return make_admin(db_session, password_hash, email="intern@shop.test")


@pytest.fixture(scope='function')
def worker(db_session):
    w = Worker(name="Bilal", phone="0300-1234567", salary_cents=3_000_000, is_active=True)
    db_session.add(w)
    db_session.commit()
    return w


@pytest.fixture(scope='function')
def vendor(db_session):
    v = Vendor(name="Karachi Wholesale", contact="Imran", is_active=True)
    db_session.add(v)
    db_session.commit()
    return v


def make_product(db_session, *, name="Soap", quantity=10, sell_price_cents=500, retail_price_cents=350):
    product = Product(
        name=name,
        retail_price_cents=retail_price_cents,
        sell_price_cents=sell_price_cents,
        quantity=quantity,
    )
    db_session.add(product)
    db_session.flush()
    stock_service.record_opening_stock(product, note="fixture")
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product(db_session):
    """Product P: quantity 10, sell price 500 cents."""
    return make_product(db_session)


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for an admin."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def superadmin_headers(client, superadmin):
    return auth_headers(get_auth_token(client, superadmin.email))


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))


@pytest.fixture(scope='function')
def bare_headers(client, bare_admin):
    return auth_headers(get_auth_token(client, bare_admin.email))
