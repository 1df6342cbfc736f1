from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .contracts import WeatherProvider
from .fake_providers import FakeWeatherProvider
from .real_providers import OpenWeatherMapProvider

logger = logging.getLogger(__name__)

FAKE_MODES = {"demo", "test"}


@dataclass
class ProviderSet:
    weather: WeatherProvider
    mode: str = "prod"


def _build_prod() -> ProviderSet:
    return ProviderSet(weather=OpenWeatherMapProvider(), mode="prod")


def _build_fake(mode: str) -> ProviderSet:
    return ProviderSet(weather=FakeWeatherProvider(), mode=mode)


_provider_cache: Optional[ProviderSet] = None


def load_providers(mode: Optional[str] = None) -> ProviderSet:
    global _provider_cache
    active_mode = (mode or os.environ.get("RAINBOW_MODE", "prod")).lower()
    if _provider_cache and mode is None:
        return _provider_cache
    if active_mode in FAKE_MODES:
        _provider_cache = _build_fake(active_mode)
    else:
        _provider_cache = _build_prod()
    logger.info(f"Weather providers loaded in {_provider_cache.mode} mode")
    return _provider_cache


def get_providers() -> ProviderSet:
    return load_providers()


def reload_providers(mode: Optional[str] = None) -> ProviderSet:
    global _provider_cache
    _provider_cache = None
    return load_providers(mode)
