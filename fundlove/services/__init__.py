"""Services package."""

from fundlove.services.gateway import (
    AuthorizationMismatchError,
    DataGatewayInterface,
    GatewayError,
    GatewayUnavailableError,
    GoogleSheetsClient,
    GoogleSheetsDataGateway,
    InMemoryDataGateway,
    NotFoundError,
)

__all__ = [
    "AuthorizationMismatchError",
    "DataGatewayInterface",
    "GatewayError",
    "GatewayUnavailableError",
    "GoogleSheetsClient",
    "GoogleSheetsDataGateway",
    "InMemoryDataGateway",
    "NotFoundError",
]
