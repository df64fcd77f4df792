"""
Data Gateway Package

Provides the abstract backend interface and its concrete implementations.
Google Sheets is the hosted backend; the in-memory gateway backs tests and
offline demos.
"""

from fundlove.services.gateway.interface import (
    AuthorizationMismatchError,
    DataGatewayInterface,
    GatewayError,
    GatewayUnavailableError,
    NotFoundError,
    select_active_target,
)
from fundlove.services.gateway.memory import InMemoryDataGateway
from fundlove.services.gateway.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDataGateway,
)

__all__ = [
    # Interface
    "DataGatewayInterface",
    "select_active_target",
    # Exceptions
    "AuthorizationMismatchError",
    "GatewayError",
    "GatewayUnavailableError",
    "NotFoundError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDataGateway",
    "InMemoryDataGateway",
]
