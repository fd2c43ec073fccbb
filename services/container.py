"""Wire repositories and infrastructure into the service objects used by routes."""

from __future__ import annotations

from dataclasses import dataclass

from config import AnalyticsSettings
from infrastructure.geo.protocol import GeoLocator
from repositories.factory import Repositories
from services.aggregator import Aggregator
from services.enricher import EventEnricher
from services.exporter import Exporter
from services.queries import DashboardQuery, GlobalQuery, LinkQuery
from services.tracking import TrackingService


@dataclass
class Services:
    repositories: Repositories
    geo_locator: GeoLocator
    tracking: TrackingService
    aggregator: Aggregator
    dashboard: DashboardQuery
    links: LinkQuery
    global_analytics: GlobalQuery
    exporter: Exporter


def build_services(
    settings: AnalyticsSettings, repositories: Repositories, geo_locator: GeoLocator
) -> Services:
    store = repositories.event_store
    aggregator = Aggregator(store)
    enricher = EventEnricher(geo_locator, timeout_seconds=settings.geo_timeout_seconds)

    return Services(
        repositories=repositories,
        geo_locator=geo_locator,
        tracking=TrackingService(enricher, store, repositories.link_registry),
        aggregator=aggregator,
        dashboard=DashboardQuery(
            aggregator, repositories.link_registry, settings.dashboard_window_days
        ),
        links=LinkQuery(
            aggregator,
            store,
            repositories.link_registry,
            settings.dashboard_window_days,
        ),
        global_analytics=GlobalQuery(aggregator, repositories.user_registry),
        exporter=Exporter(store),
    )
