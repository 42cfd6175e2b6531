"""Build repository service and client gateways."""

from .exceptions import BuildClosedError, BuildError, BuildGatewayError, InvalidStepError
from .gateway import BuildGateway, LocalBuildGateway
from .http_gateway import HttpBuildGateway
from .service import BuildService

__all__ = [
    "BuildClosedError",
    "BuildError",
    "BuildGateway",
    "BuildGatewayError",
    "BuildService",
    "HttpBuildGateway",
    "InvalidStepError",
    "LocalBuildGateway",
]
