"""Unit tests for catalog service."""

from datetime import date, time

import pytest

from inselbahn.core.exceptions import CatalogNotFoundError
from inselbahn.models import TourType
from inselbahn.schemas.catalog import CreateTourConfigRequest
from inselbahn.services.catalog_service import CatalogService


def config_request(**overrides) -> CreateTourConfigRequest:
    values = {
        "tour_type": TourType.UNTERLAND,
        "times": ["14:30", "13:30"],
        "adult_price": 1100,
        "child_price": 600,
        "valid_from": date(2026, 1, 1),
    }
    values.update(overrides)
    return CreateTourConfigRequest(**values)


@pytest.mark.asyncio
async def test_create_config(test_session):
    """Test publishing a tour configuration."""
    service = CatalogService(test_session)

    config = await service.create_config(config_request(child_free_times=["14:30"]))

    assert config.id is not None
    assert config.times == ["13:30", "14:30"]
    assert config.slot_times == [time(13, 30), time(14, 30)]
    assert config.children_ride_free(time(14, 30))
    assert not config.children_ride_free(time(13, 30))


@pytest.mark.asyncio
async def test_current_config_is_latest_valid_from(test_session):
    service = CatalogService(test_session)
    await service.create_config(config_request(adult_price=1000))
    await service.create_config(config_request(adult_price=1200, valid_from=date(2026, 6, 1)))

    before = await service.get_current_config(TourType.UNTERLAND, date(2026, 5, 31))
    after = await service.get_current_config(TourType.UNTERLAND, date(2026, 6, 1))

    assert before.adult_price == 1000
    assert after.adult_price == 1200


@pytest.mark.asyncio
async def test_expired_config_is_not_current(test_session):
    service = CatalogService(test_session)
    await service.create_config(config_request(valid_until=date(2026, 9, 30)))

    assert await service.find_current_config(TourType.UNTERLAND, date(2026, 9, 30)) is not None
    assert await service.find_current_config(TourType.UNTERLAND, date(2026, 10, 1)) is None


@pytest.mark.asyncio
async def test_missing_config_raises(test_session):
    service = CatalogService(test_session)
    await service.create_config(config_request())

    with pytest.raises(CatalogNotFoundError) as exc_info:
        await service.get_current_config(TourType.PREMIUM, date(2026, 6, 2))

    assert exc_info.value.status_code == 404
    assert exc_info.value.code == "CATALOG_NOT_FOUND"


def test_child_free_times_must_be_departures():
    with pytest.raises(ValueError):
        config_request(child_free_times=["16:00"])


def test_times_must_be_hh_mm():
    with pytest.raises(ValueError):
        config_request(times=["1:30"])
