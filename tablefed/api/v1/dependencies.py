"""Presentation-layer dependency injection.

Routes depend on the tenant marker and on services held in app.state;
nothing here constructs infrastructure per request.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from tablefed.application.use_cases.tables import TableLifecycleService
from tablefed.core.config import get_settings
from tablefed.domain.exceptions import AuthenticationException
from tablefed.domain.value_objects import TenantMarker
from tablefed.infrastructure.factory import BackendFactory, Services


def get_services(request: Request) -> Services:
    """Services wired at startup; built on first use when no lifespan ran."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        services = BackendFactory.create_services(get_settings())
        request.app.state.services = services
    return services


def get_tenant_marker(request: Request) -> str:
    """Derive the tenant marker from the credential header.

    The raw credential is hashed immediately and never passed further.

    Raises:
        AuthenticationException: Header missing or blank (401).
    """
    settings = get_settings()
    credential = (request.headers.get(settings.api_key_header_name) or "").strip()
    if not credential:
        raise AuthenticationException(
            f"Missing tenant credential header {settings.api_key_header_name}"
        )
    return TenantMarker.from_credential(credential, settings.tenant_marker_length).value


def get_table_service(
    services: Annotated[Services, Depends(get_services)],
) -> TableLifecycleService:
    return services.tables
