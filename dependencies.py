"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built once in the app lifespan and
stored on ``app.state.services``.
"""

from __future__ import annotations

from fastapi import Depends, Request

from errors import AuthenticationError, ForbiddenError
from repositories.protocol import EventStore
from schemas.models.identity import CallerIdentity
from services.container import Services
from services.exporter import Exporter
from services.queries import DashboardQuery, GlobalQuery, LinkQuery
from services.tracking import TrackingService


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_event_store(services: Services = Depends(get_services)) -> EventStore:
    return services.repositories.event_store


def get_tracking_service(services: Services = Depends(get_services)) -> TrackingService:
    return services.tracking


def get_dashboard_query(services: Services = Depends(get_services)) -> DashboardQuery:
    return services.dashboard


def get_link_query(services: Services = Depends(get_services)) -> LinkQuery:
    return services.links


def get_global_query(services: Services = Depends(get_services)) -> GlobalQuery:
    return services.global_analytics


def get_exporter(services: Services = Depends(get_services)) -> Exporter:
    return services.exporter


def get_current_user(request: Request) -> CallerIdentity:
    """Return the caller resolved by the upstream auth middleware."""
    identity = getattr(request.state, "user", None)
    if not isinstance(identity, CallerIdentity):
        raise AuthenticationError("authentication required")
    return identity


def require_admin(user: CallerIdentity = Depends(get_current_user)) -> CallerIdentity:
    if not user.is_admin:
        raise ForbiddenError("admin access required")
    return user
