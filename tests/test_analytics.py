from datetime import datetime

import pytest

from analytics import ClientVisitAggregator, rank_services
from entities import AppointmentStatus
from errors import NotFoundError


@pytest.fixture
def aggregator(catalog, store):
    return ClientVisitAggregator(catalog, store)


def test_olha_spend_and_average_check(store, aggregator, make_form):
    first = store.create(make_form(time="10:00", services=["svc-manicure"]))
    second = store.create(make_form(time="12:00", services=["svc-gel"]))
    for appointment in (first, second):
        store.update_status(appointment.id, AppointmentStatus.COMPLETED)

    analytics = aggregator.analytics_for(first.client_id)

    assert analytics.total_spent == 800
    assert analytics.total_visits == 2
    assert analytics.average_check == 400
    assert analytics.last_visit_date == datetime(2026, 10, 19, 12, 0)


def test_zero_visits_gives_zero_average(store, catalog, aggregator, make_form):
    client = catalog.resolve_client("Ольга", "0501112233")
    analytics = aggregator.analytics_for(client.id)
    assert analytics.total_visits == 0
    assert analytics.average_check == 0

    appointment = store.create(make_form())
    store.update_status(appointment.id, AppointmentStatus.CANCELLED)
    analytics = aggregator.analytics_for(client.id)
    assert analytics.total_visits == 0
    assert analytics.total_spent == 0
    assert analytics.average_check == 0


def test_average_check_for_uneven_totals(store, aggregator, make_form):
    store.create(make_form(time="09:00", services=["svc-manicure"]))
    store.create(make_form(time="10:00", services=["svc-design"]))
    appointment = store.create(make_form(time="11:00", services=["svc-spa"]))

    analytics = aggregator.analytics_for(appointment.client_id)
    assert analytics.total_spent == 750
    assert analytics.average_check == pytest.approx(250)


def test_prices_are_looked_up_live(store, catalog, aggregator, make_form):
    appointment = store.create(make_form(services=["svc-manicure"]))
    catalog.update_service("svc-manicure", price=500)

    assert aggregator.analytics_for(appointment.client_id).total_spent == 500


def test_favorites_rank_by_count_then_first_occurrence(store, aggregator, make_form):
    store.create(make_form(time="09:00", services=["svc-design", "svc-manicure"]))
    store.create(make_form(time="11:00", services=["svc-manicure"]))
    appointment = store.create(make_form(time="13:00", services=["svc-gel"]))

    favorites = aggregator.favorite_services(appointment.client_id)

    assert [(f.service_id, f.count) for f in favorites] == [
        ("svc-manicure", 2), ("svc-design", 1), ("svc-gel", 1)]
    assert favorites[0].service_name == "Манікюр класичний"


def test_recommendations_skip_favorites_and_prefer_known_categories(store, aggregator, make_form):
    store.create(make_form(time="09:00", services=["svc-design", "svc-manicure"]))
    appointment = store.create(make_form(time="13:00", services=["svc-gel"]))

    recommended = aggregator.recommended_services(appointment.client_id)

    assert [s.id for s in recommended] == ["svc-removal", "svc-spa"]


def test_recommendations_exclude_inactive_services(store, catalog, aggregator, make_form):
    appointment = store.create(make_form(services=["svc-manicure"]))
    catalog.deactivate_service("svc-removal")

    ids = [s.id for s in aggregator.recommended_services(appointment.client_id)]
    assert "svc-removal" not in ids
    assert "svc-manicure" not in ids
    assert len(ids) == 3


def test_visit_history_is_most_recent_first(store, aggregator, make_form):
    first = store.create(make_form(time="09:00", services=["svc-manicure", "svc-design"]))
    second = store.create(make_form(time="14:00", services=["svc-spa"]))

    visits = aggregator.visits_for(first.client_id)

    assert [v.id for v in visits] == [second.id, first.id]
    assert visits[1].total_price == 500


def test_unknown_client(aggregator):
    with pytest.raises(NotFoundError):
        aggregator.analytics_for("client-missing")


def test_rank_services_on_empty_history():
    assert rank_services([]) == []
