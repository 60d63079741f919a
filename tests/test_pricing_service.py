from __future__ import annotations

from datetime import timedelta

import pytest

from reward_points.services import pricing_service
from reward_points.services.errors import InvalidInputError, NotFoundError
from reward_points.timeutil import utcnow


def test_current_price_is_the_seeded_one(db, seed) -> None:
    product_id = seed.product(price=300).id

    assert pricing_service.get_current_price(db, product_id).points_cost == 300


def test_set_price_closes_the_previous_record(db, seed) -> None:
    product_id = seed.product(price=300).id

    pricing_service.set_price(db, product_id, 450)
    db.commit()

    history = pricing_service.get_price_history(db, product_id)
    assert [p.points_cost for p in history] == [450, 300]
    assert history[1].effective_to is not None
    assert history[1].effective_to < history[0].effective_from
    assert pricing_service.get_current_price(db, product_id).points_cost == 450


def test_future_price_is_not_effective_yet(db, seed) -> None:
    product_id = seed.product(price=300).id
    starts = utcnow() + timedelta(days=7)

    pricing_service.set_price(db, product_id, 500, effective_from=starts)
    db.commit()

    assert pricing_service.get_current_price(db, product_id).points_cost == 300
    assert pricing_service.get_current_price(db, product_id, at=starts + timedelta(hours=1)).points_cost == 500


def test_product_without_price_is_not_found(db, seed) -> None:
    product_id = seed.product(price=300).id
    for p in pricing_service.get_price_history(db, product_id):
        p.is_active = False
    db.commit()

    with pytest.raises(NotFoundError):
        pricing_service.get_current_price(db, product_id)


def test_non_positive_price_is_rejected(db, seed) -> None:
    product_id = seed.product().id

    with pytest.raises(InvalidInputError):
        pricing_service.set_price(db, product_id, 0)
