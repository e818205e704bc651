"""
Аналитика визитов клиента: сумма, средний чек, любимые и рекомендуемые услуги.
"""

from collections import Counter
from typing import Iterable, List, Tuple

from entities import Appointment, ClientAnalytics, ClientVisit, FavoriteService, Service

FAVORITES_LIMIT = 3
RECOMMENDATIONS_LIMIT = 3


def rank_services(appointments: Iterable[Appointment]) -> List[Tuple[str, int]]:
    """
    Частота услуг по убыванию; при равенстве раньше идет та,
    что встретилась первой.
    """
    counts = Counter()
    first_seen = {}
    for appointment in appointments:
        for service_id in appointment.services:
            counts[service_id] += 1
            first_seen.setdefault(service_id, len(first_seen))
    return sorted(counts.items(), key=lambda item: (-item[1], first_seen[item[0]]))


class ClientVisitAggregator:
    """
    Считает аналитику клиента по его записям.
    Цены берутся из каталога на момент запроса, а не на момент визита.
    """

    def __init__(self, catalog, appointments):
        self.catalog = catalog
        self.appointments = appointments

    def _visits(self, client_id: str) -> List[Appointment]:
        # В хронологическом порядке, без отмененных
        self.catalog.get_client(client_id)
        return [a for a in self.appointments.for_client(client_id) if not a.is_cancelled]

    def visits_for(self, client_id: str) -> List[ClientVisit]:
        """История визитов, последние первыми."""
        visits = [
            ClientVisit(
                id=a.id,
                client_id=a.client_id,
                date=a.start_time,
                master_id=a.master_id,
                services=a.services,
                total_price=self.catalog.total_price(a.services),
                notes=a.notes,
            )
            for a in self._visits(client_id)
        ]
        visits.reverse()
        return visits

    def favorite_services(self, client_id: str) -> List[FavoriteService]:
        favorites = []
        for service_id, count in rank_services(self._visits(client_id)):
            service = self.catalog.find_service(service_id)
            name = service.name if service else service_id
            favorites.append(FavoriteService(service_id, name, count))
        return favorites

    def recommended_services(self, client_id: str) -> List[Service]:
        """
        Активные услуги, которых нет среди любимых клиента.
        Сначала услуги из категорий, которые клиент уже заказывал.
        """
        visits = self._visits(client_id)
        ranked = rank_services(visits)
        top = {service_id for service_id, _ in ranked[:FAVORITES_LIMIT]}

        known_categories = set()
        for service_id, _ in ranked:
            service = self.catalog.find_service(service_id)
            if service:
                known_categories.add(service.category)

        candidates = [s for s in self.catalog.list_services(active_only=True) if s.id not in top]
        candidates.sort(key=lambda s: s.category not in known_categories)
        return candidates[:RECOMMENDATIONS_LIMIT]

    def analytics_for(self, client_id: str) -> ClientAnalytics:
        visits = self._visits(client_id)
        total_visits = len(visits)
        total_spent = sum(self.catalog.total_price(a.services) for a in visits)
        average_check = total_spent / total_visits if total_visits else 0

        return ClientAnalytics(
            client_id=client_id,
            total_visits=total_visits,
            total_spent=total_spent,
            average_check=average_check,
            favorite_services=tuple(self.favorite_services(client_id)),
            recommended_services=tuple(self.recommended_services(client_id)),
            visit_history=tuple(self.visits_for(client_id)),
            last_visit_date=visits[-1].start_time if visits else None,
        )
