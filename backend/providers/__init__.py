from .fake_providers import FakeWeatherProvider
from .real_providers import OpenWeatherMapProvider
from .registry import ProviderSet, get_providers, load_providers, reload_providers

__all__ = [
    "FakeWeatherProvider",
    "OpenWeatherMapProvider",
    "ProviderSet",
    "get_providers",
    "load_providers",
    "reload_providers",
]
