from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from reward_points.db import Base, build_engine, get_db
from reward_points.main import app
from reward_points.models.event import Event
from reward_points.models.event_participant import EventParticipant
from reward_points.models.inventory_item import InventoryItem
from reward_points.models.point_transaction import OriginKind
from reward_points.models.product import Product, ProductPrice
from reward_points.models.user import User
from reward_points.services import points_ledger
from reward_points.services.points_ledger import LedgerOrigin
from reward_points.timeutil import utcnow


@pytest.fixture
def engine(tmp_path):
    # File-backed so that worker threads in the concurrency tests share one database.
    eng = build_engine(f"sqlite:///{tmp_path / 'reward_points.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class Seed:
    """Builders for the rows the services expect to exist already."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def user(self, is_active: bool = True, is_admin: bool = False) -> User:
        uid = uuid.uuid4()
        user = User(
            id=uid,
            email=f"{uid.hex[:12]}@example.com",
            display_name=f"user-{uid.hex[:6]}",
            is_active=is_active,
            is_admin=is_admin,
        )
        self.db.add(user)
        self.db.commit()
        return user

    def funded_user(self, balance: int, is_active: bool = True) -> User:
        user = self.user(is_active=is_active)
        points_ledger.provision_account(self.db, user.id)
        if balance > 0:
            points_ledger.credit(
                self.db,
                user.id,
                balance,
                LedgerOrigin(kind=OriginKind.ADMIN_AWARD, description="opening balance"),
            )
        self.db.commit()
        return user

    def product(self, price: int = 300, available: int = 5, reorder_level: int = 0) -> Product:
        product = Product(name=f"product-{uuid.uuid4().hex[:6]}", description="test product")
        self.db.add(product)
        self.db.flush()

        self.db.add(
            ProductPrice(
                product_id=product.id,
                points_cost=price,
                effective_from=utcnow() - timedelta(days=1),
                is_active=True,
            )
        )
        self.db.add(
            InventoryItem(
                product_id=product.id,
                available=available,
                reserved=0,
                reorder_level=reorder_level,
            )
        )
        self.db.commit()
        return product

    def event(self, total_pool: int = 1000, name: str = "Hackathon") -> Event:
        event = Event(name=name, event_date=utcnow(), total_pool=total_pool, allocated=0)
        self.db.add(event)
        self.db.commit()
        return event

    def participant(self, event_id, user_id=None):
        """Register ``user_id`` (a fresh user when omitted) for the event; returns the user id."""
        if user_id is None:
            user_id = self.user().id
        self.db.add(EventParticipant(event_id=event_id, user_id=user_id, registered_at=utcnow()))
        self.db.commit()
        return user_id


@pytest.fixture
def seed(db) -> Seed:
    return Seed(db)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not entered as a context manager: the startup hook would create tables
    # on the configured DATABASE_URL instead of the test database.
    yield TestClient(app)
    app.dependency_overrides.clear()
