"""Identity provider adapters."""

from .toolkit import IdentityToolkitGateway, map_provider_error

__all__ = ["IdentityToolkitGateway", "map_provider_error"]
