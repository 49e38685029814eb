from grocer.providers.base import ProviderError, TextProvider
from grocer.providers.chain import ProviderChain, build_provider_chain
from grocer.providers.synthetic import SyntheticProvider

__all__ = [
    "ProviderChain",
    "ProviderError",
    "SyntheticProvider",
    "TextProvider",
    "build_provider_chain",
]
