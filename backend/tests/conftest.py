"""
Pytest fixtures for cashledger backend tests.

Provides test database setup, a pinned business clock, record factories
and test client.
"""

from datetime import datetime

import pytest
from cashledger import create_app
from cashledger.clock import EXTENSION_KEY, FixedClock
from cashledger.extensions import db
from cashledger.models import Sale, SaleItem, Expense, Refund
from cashledger.services.authorization import Principal, ROLE_ADMIN, ROLE_CASHIER


ADMIN_TOKEN = "admin-token"
CASHIER_TOKEN = "cashier-token"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BUSINESS_TIMEZONE': 'UTC',
        'DEFAULT_MORA_RATE_BPS': 200,
        'API_PRINCIPALS': {
            ADMIN_TOKEN: {"user_id": 1, "role": ROLE_ADMIN},
            CASHIER_TOKEN: {"user_id": 2, "role": ROLE_CASHIER},
        },
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
def clock(app):
    """Business clock pinned to 2024-05-01 08:00 UTC; installed app-wide."""
    fixed = FixedClock(datetime(2024, 5, 1, 8, 0))
    previous = app.extensions.get(EXTENSION_KEY)
    app.extensions[EXTENSION_KEY] = fixed
    yield fixed
    app.extensions[EXTENSION_KEY] = previous


@pytest.fixture
def admin():
    return Principal(user_id=1, role=ROLE_ADMIN)


@pytest.fixture
def cashier():
    return Principal(user_id=2, role=ROLE_CASHIER)


@pytest.fixture
def auth_headers():
    def _headers(token=CASHIER_TOKEN):
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_sale(db_session):
    """
    Insert a sale as the register would have written it.

    Orders and credit sales default their deposit to 0; plain sales to
    the full total.
    """
    def _make(
        created_at,
        total_cents,
        method="CASH",
        *,
        deposit_cents=None,
        is_order=False,
        breakdown=None,
        cost_cents=0,
        tax_cents=0,
        status="ACTIVE",
        customer_id=None,
    ):
        if deposit_cents is None:
            deposit_cents = 0 if (is_order or method == "CREDIT") else total_cents
        sale = Sale(
            created_at=created_at,
            status=status,
            payment_method=method,
            total_cents=total_cents,
            tax_cents=tax_cents,
            is_order=is_order,
            deposit_cents=deposit_cents,
            balance_cents=total_cents - deposit_cents if is_order else 0,
            customer_id=customer_id,
        )
        for tender, cents in (breakdown or {}).items():
            setattr(sale, f"{tender.lower()}_cents", cents)
        db_session.add(sale)
        if cost_cents:
            db_session.add(SaleItem(sale=sale, description="Item", quantity=1,
                                    price_cents=total_cents, cost_cents=cost_cents))
        db_session.commit()
        return sale
    return _make


@pytest.fixture
def settle_balance(db_session):
    """Record an order's balance payment on an existing sale."""
    def _settle(sale, paid_at, method, paid_cents=None):
        sale.balance_payment_date = paid_at
        sale.balance_payment_method = method
        sale.balance_paid_cents = sale.balance_cents if paid_cents is None else paid_cents
        db_session.commit()
        return sale
    return _settle


@pytest.fixture
def make_expense(db_session):
    def _make(occurred_at, amount_cents, method="CASH"):
        expense = Expense(occurred_at=occurred_at, amount_cents=amount_cents, method=method)
        db_session.add(expense)
        db_session.commit()
        return expense
    return _make


@pytest.fixture
def make_refund(db_session):
    def _make(occurred_at, amount_cents, method="CASH", sale_id=None):
        refund = Refund(occurred_at=occurred_at, amount_cents=amount_cents, method=method, sale_id=sale_id)
        db_session.add(refund)
        db_session.commit()
        return refund
    return _make
