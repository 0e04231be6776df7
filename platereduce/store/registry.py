"""
URL scheme registry for opening plates.
"""

from typing import Callable, Dict
from urllib.parse import urlparse

from .base import PlateStore
from .memory import MemoryPlateStore
from ..errors import ArgumentError

StoreFactory = Callable[[str], PlateStore]

_BACKENDS: Dict[str, StoreFactory] = {}


def register_backend(scheme: str, factory: StoreFactory) -> None:
    """
    Register a store backend for a URL scheme.

    Args:
        scheme: URL scheme, e.g. "memory"
        factory: Callable taking the full URL and returning a PlateStore
    """
    _BACKENDS[scheme.lower()] = factory


def available_schemes():
    """Registered URL schemes, sorted."""
    return sorted(_BACKENDS)


def open_plate(url: str) -> PlateStore:
    """
    Open the plate a URL points to.

    Raises:
        ArgumentError: If the URL is empty or its scheme has no backend
    """
    if not url:
        raise ArgumentError("No plate URL given")

    scheme = urlparse(url).scheme.lower()
    factory = _BACKENDS.get(scheme)
    if factory is None:
        raise ArgumentError(
            f"No store backend for '{url}'. Registered schemes: {available_schemes()}"
        )
    return factory(url)


register_backend("memory", MemoryPlateStore.from_url)
