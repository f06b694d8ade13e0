"""Text-generation backends."""

from parley.providers.base import (
    BaseProvider,
    ProviderContractError,
    ProviderError,
    ProviderTransportError,
    provider_error_summary,
)
from parley.providers.factory import ProviderFactory

__all__ = [
    "BaseProvider",
    "ProviderContractError",
    "ProviderError",
    "ProviderFactory",
    "ProviderTransportError",
    "provider_error_summary",
]
