"""Shared fixtures: in-memory SQLite database, API client and data factories."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, enable_sqlite_foreign_keys, get_db
from main import app
from models.category import Category
from models.inventory import InventoryTransaction
from models.order import Order
from models.product import Product
from models.users import User
from services import catalog, order_ledger
from utils.tokenJWT import create_access_token
from utils.transaction import atomic

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def _get_test_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email="customer@umistore.test", role="customer", name="Siti Rahma"):
        user = User(email=email, role=role, name=name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@umistore.test", role="admin", name="Store Admin")


@pytest.fixture
def customer(make_user):
    return make_user()


@pytest.fixture
def make_category(db):
    def _make(name="Batik"):
        category = Category(name=name)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category
    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Batik Shirt", price=5000, stock=10, discount_price=None, category_id=None, actor_id=None):
        with atomic(db):
            product = catalog.create_product(
                db,
                {
                    "name": name,
                    "price": price,
                    "discount_price": discount_price,
                    "category_id": category_id,
                    "stock": stock,
                },
                actor_id=actor_id,
            )
        db.refresh(product)
        return product
    return _make


@pytest.fixture
def place_order(db):
    def _place(lines, actor_id=None, payment_method="cod"):
        return order_ledger.create_order(
            db,
            lines,
            customer_name="Siti Rahma",
            address="Jl. Merdeka 1, Bandung",
            phone="+62 812 0000 0000",
            payment_method=payment_method,
            actor_id=actor_id,
        )
    return _place


def auth_headers(user):
    token = create_access_token({"sub": user.email, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


def stock_of(db, product_id):
    db.expire_all()
    return db.get(Product, product_id).stock


def ledger_rows(db, product_id, transaction_type=None):
    db.expire_all()
    query = db.query(InventoryTransaction).filter(InventoryTransaction.product_id == product_id)
    if transaction_type is not None:
        query = query.filter(InventoryTransaction.transaction_type == transaction_type)
    return query.order_by(InventoryTransaction.id).all()


def order_count(db):
    db.expire_all()
    return db.query(Order).count()
