"""
Shared fixtures: an in-memory SQLite database per test, settings tuned for
tests, and small factories for the rows most tests need.
"""

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from posapi.config import Settings
from posapi.core.security import hash_password
from posapi.core.session_context import SessionContext
from posapi.database.session import get_db
from posapi.deps import get_session_context
from posapi.main import create_app
from posapi.models import Base, Category, Customer, Product, User, UserRole

TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine, autocommit=False, autoflush=False, expire_on_commit=False
    )


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY="test-secret",
        BCRYPT_ROUNDS=4,
        TRANSACTION_MAX_RETRIES=5,
        ENFORCE_STOCK_ON_CHECKOUT=True,
        TELEGRAM_BOT_TOKEN=None,
        TELEGRAM_CHAT_ID=None,
    )


@pytest.fixture
def cashier(db):
    user = User(
        email="kasir@koperasi.co.id",
        name="Kasir Satu",
        role=UserRole.CASHIER.value,
        password_hash=hash_password("rahasia123", rounds=4),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db):
    user = User(
        email="admin@koperasi.co.id",
        name="Admin",
        role=UserRole.ADMIN.value,
        password_hash=hash_password("admin123", rounds=4),
        is_active=True,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def context(cashier):
    return SessionContext(
        user_id=cashier.id,
        name=cashier.name,
        email=cashier.email,
        role=cashier.role,
        session_id="test-session",
    )


@pytest.fixture
def make_customer(db):
    counter = {"n": 0}

    def _make(name="Budi", debt=0, member_id=None):
        counter["n"] += 1
        customer = Customer(
            member_id=member_id or f"T-{counter['n']:04d}",
            name=name,
            total_spent=0,
            debt=debt,
        )
        db.add(customer)
        db.commit()
        return customer

    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Teh Botol", price=5000, cost_price=3500, stock=10, category=None):
        product = Product(
            name=name,
            price=price,
            cost_price=cost_price,
            stock=stock,
            category_id=category.id if category else None,
            is_active=True,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def category(db):
    category = Category(name="Minuman", color="#0ea5e9")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def app(db, test_settings):
    """Application wired to the test database and settings"""
    application = create_app()

    def _get_test_db():
        yield db

    application.dependency_overrides[get_db] = _get_test_db
    application.container.config.config.override(providers.Object(test_settings))
    yield application
    application.dependency_overrides.clear()
    application.container.config.config.reset_override()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login_as(app):
    """Skip the token round trip and act as the given context"""

    def _login(context):
        app.dependency_overrides[get_session_context] = lambda: context

    return _login
