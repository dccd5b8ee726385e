"""Unit tests for statistics service."""

from datetime import date, time

import pytest

from inselbahn.services.statistics_service import StatisticsService, occupancy_rate, resolve_period


@pytest.fixture
def service(test_session, policy):
    return StatisticsService(test_session, policy=policy)


@pytest.mark.asyncio
async def test_occupancy_rate_over_departures(service, add_booking, catalog):
    """Three departures with 40 passengers each use 88.9% of the staffed capacity."""
    for day in (2, 3, 4):
        await add_booking(tour_date=date(2026, 6, day), adults=30, children=10, total_amount=39000)

    report = await service.get_statistics(date(2026, 6, 1), date(2026, 6, 30))

    assert report.occupancy_rates["UNTERLAND"]["13:30"] == 88.9
    assert report.occupancy_rates["UNTERLAND"]["14:30"] == 0.0
    assert report.occupancy_rates["PREMIUM"] == {"10:30": 0.0, "12:30": 0.0, "14:15": 0.0, "16:00": 0.0}

    series = report.tour_statistics["UNTERLAND"]["13:30"]
    assert series.total_tours == 3
    assert series.total_passengers == 120
    assert series.average_passengers == 40.0
    assert [tour.tour_date for tour in series.tours] == [date(2026, 6, 2), date(2026, 6, 3), date(2026, 6, 4)]
    assert report.tour_statistics["UNTERLAND"]["14:30"].total_tours == 0


@pytest.mark.asyncio
async def test_totals_and_breakdowns(service, add_booking):
    await add_booking(adults=2, total_amount=2200, payment_method="sumup", sold_on_site=True)
    await add_booking(adults=1, children=2, total_amount=2300, notes="Zahlung: Bar, Verkauf vor Ort")
    await add_booking(
        tour_type="PREMIUM", tour_time=time(10, 30), tour_date=date(2026, 7, 1), adults=3, total_amount=7500
    )
    await add_booking(adults=4, total_amount=4400, payment_method="rechnung", payment_status="pending")
    await add_booking(adults=9, total_amount=9900, status="cancelled")

    report = await service.get_statistics(date(2026, 1, 1), date(2026, 12, 31))

    assert report.total_bookings == 4
    assert report.total_passengers == 2 + 3 + 3 + 4
    assert report.total_revenue == 2200 + 2300 + 7500 + 4400

    assert report.by_payment_method["sumup"].count == 1
    assert report.by_payment_method["bar"].revenue == 2300
    assert report.by_payment_method["online"].revenue == 7500
    assert report.by_payment_method["rechnung"].count == 1

    unterland = report.by_tour_type["UNTERLAND"]
    assert unterland.count == 3
    assert unterland.passengers == 9
    assert unterland.average_group_size == 3.0
    assert unterland.average_revenue == round(8900 / 3, 2)

    assert report.by_month["2026-06"].count == 3
    assert report.by_month["2026-07"].revenue == 7500

    day = report.daily_revenue["2026-06-02"]
    assert day.total == 8900
    assert day.by_payment_method == {"online": 0, "bar": 2300, "sumup": 2200, "rechnung": 4400}

    assert report.popular_times["UNTERLAND"] == {"13:30": 9}
    assert report.popular_times["PREMIUM"] == {"10:30": 3}


@pytest.mark.asyncio
async def test_empty_period(service):
    report = await service.get_statistics(date(2025, 1, 1), date(2025, 12, 31))

    assert report.total_bookings == 0
    assert set(report.by_payment_method) == {"online", "bar", "sumup", "rechnung"}
    assert report.popular_times == {"UNTERLAND": {}, "PREMIUM": {}}
    assert report.occupancy_rates == {"UNTERLAND": {}, "PREMIUM": {}}


def test_resolve_period():
    assert resolve_period(2026, 2) == (date(2026, 2, 1), date(2026, 2, 28))
    assert resolve_period(2028, 2) == (date(2028, 2, 1), date(2028, 2, 29))
    assert resolve_period(2026) == (date(2026, 1, 1), date(2026, 12, 31))
    assert resolve_period(today=date(2027, 5, 4)) == (date(2027, 1, 1), date(2027, 12, 31))


def test_occupancy_rate():
    assert occupancy_rate(120, 45, 3) == 88.9
    assert occupancy_rate(0, 45, 0) == 0.0
    assert occupancy_rate(11, 11, 1) == 100.0
