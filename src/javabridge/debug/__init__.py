"""Debug configuration injection and language-server requests."""

from .client import LanguageServerClient, MainClassEntry, ProxyLanguageServerClient
from .injector import DebugConfigInjector, DebugLaunchConfig, inject_bundle

__all__ = [
    "DebugConfigInjector",
    "DebugLaunchConfig",
    "LanguageServerClient",
    "MainClassEntry",
    "ProxyLanguageServerClient",
    "inject_bundle",
]
