"""
Pytest fixtures for TablePOS backend tests.

Provides test database setup, role/user/token fixtures, catalog fixtures,
and the Flask test client.
"""

from datetime import timedelta

import pytest

from tablepos import create_app
from tablepos.extensions import db
from tablepos.models import Product, Stock, RestaurantTable, Role, User
from tablepos.services.auth_service import hash_password, create_default_roles
from tablepos.services import permission_service, business_session_service
from tablepos.time_utils import business_today

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'RUN_STARTUP_TASKS': False,
        'DAY_ROLLOVER_ENABLED': False,
        'BCRYPT_ROUNDS': 4,
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


@pytest.fixture(scope='function')
def fresh(db_session):
    """Reload a row, discarding whatever the test's session had cached."""
    def _fresh(model, pk):
        db_session.expire_all()
        return db_session.get(model, pk)
    return _fresh


# =============================================================================
# ACCESS CONTROL
# =============================================================================

@pytest.fixture(scope='function')
def setup_roles(db_session):
    """Setup default roles and permissions."""
    create_default_roles()
    permission_service.initialize_permissions()
    permission_service.assign_default_role_permissions()
    db_session.commit()


def _make_user(db_session, username: str, role_name: str) -> User:
    role = db_session.query(Role).filter_by(name=role_name).first()
    user = User(username=username, password_hash=hash_password(PASSWORD), role_id=role.id)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session, setup_roles):
    return _make_user(db_session, "admin", "admin")


@pytest.fixture(scope='function')
def manager_user(db_session, setup_roles):
    return _make_user(db_session, "manager", "manager")


@pytest.fixture(scope='function')
def cashier_user(db_session, setup_roles):
    return _make_user(db_session, "cashier", "cashier")


@pytest.fixture(scope='function')
def kitchen_user(db_session, setup_roles):
    return _make_user(db_session, "kitchen", "kitchen")


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def manager_headers(client, manager_user):
    return auth_headers(get_auth_token(client, manager_user.username))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.username))


@pytest.fixture(scope='function')
def kitchen_headers(client, kitchen_user):
    return auth_headers(get_auth_token(client, kitchen_user.username))


# =============================================================================
# BUSINESS DAYS AND CATALOG
# =============================================================================

@pytest.fixture(scope='function')
def today_session(db_session):
    """Active business day dated today."""
    return business_session_service.create_session(day=business_today(), is_active=True)


@pytest.fixture(scope='function')
def past_session(db_session):
    """Inactive business day dated yesterday."""
    return business_session_service.create_session(day=business_today() - timedelta(days=1))


@pytest.fixture(scope='function')
def stock_item(db_session):
    stock = Stock(name="Pide dough", quantity=10, alert_threshold=3)
    db_session.add(stock)
    db_session.commit()
    return stock


@pytest.fixture(scope='function')
def product(db_session, stock_item):
    """Price 100.00, one unit sold deducts one unit of stock_item."""
    product = Product(name="Kıymalı Pide", price_cents=10000, stock_item_id=stock_item.id)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def drink(db_session):
    """Price 10.00, no stock linkage."""
    product = Product(name="Ayran", price_cents=1000)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def table(db_session):
    table = RestaurantTable(name="Masa 1", order_number=1)
    db_session.add(table)
    db_session.commit()
    return table

