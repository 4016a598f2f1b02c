"""
Pytest fixtures for the POS backend tests.

Provides an in-memory application, per-test clean tables, an activation
code pool on disk, admin Basic-auth headers and small data factories.
"""

import base64
import json

import pytest

from caja import create_app
from caja.extensions import db
from caja.models import Product
from caja.services import license_service, settings_service

ADMIN_USER = "admin"
ADMIN_PASSWORD = "pos123"

POOL_CODES = ["123456", "654321", "111111"]


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    codes_path = tmp_path_factory.mktemp("licensing") / "sysdata.dat"
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'AUTO_CREATE_SCHEMA': False,
        'AUDIT_LOG_ASYNC': False,
        'BCRYPT_ROUNDS': 4,
        'ADMIN_USERNAME': ADMIN_USER,
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'ACTIVATION_CODES_PATH': str(codes_path),
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
    """Clean tables, default config and a fresh activation code pool for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        settings_service.ensure_defaults()
        write_code_pool(app, POOL_CODES)

        yield db.session

        db.session.rollback()


def write_code_pool(app, codes):
    payload = json.dumps({"activation_codes": list(codes)}).encode("utf-8")
    with open(app.config["ACTIVATION_CODES_PATH"], "wb") as fh:
        fh.write(base64.b64encode(payload))


@pytest.fixture
def admin_headers():
    token = base64.b64encode(f"{ADMIN_USER}:{ADMIN_PASSWORD}".encode()).decode()
    return {'Authorization': f'Basic {token}'}


@pytest.fixture
def make_product(db_session):
    """Factory: make_product(code="P-1", price_cents=10000, stock=10)."""
    counter = {"n": 0}

    def _make(code=None, name=None, price_cents=10000, stock=10, category="General"):
        counter["n"] += 1
        product = Product(
            code=code or f"TEST-{counter['n']:03d}",
            name=name or f"Producto {counter['n']}",
            price_cents=price_cents,
            stock=stock,
            category=category,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture
def licensed(db_session):
    """Activate a license from the pool."""
    return license_service.activate_license(POOL_CODES[0])


@pytest.fixture
def refresh(db_session):
    """Re-read a row after work done through another session or a bulk UPDATE."""
    def _refresh(obj):
        db_session.expire_all()
        return db_session.get(type(obj), obj.id)

    return _refresh
