"""nethost-fetch: resolve the .NET nethost native library from the NuGet registry."""

from nethost_fetch.config import ResolverConfig, load_config
from nethost_fetch.exceptions import NethostFetchError
from nethost_fetch.platform_target import PlatformTriple, detect_host_triple, map_target
from nethost_fetch.resolver import NethostResolver, ResolutionResult, resolve_nethost

__all__ = [
    "NethostFetchError",
    "NethostResolver",
    "PlatformTriple",
    "ResolutionResult",
    "ResolverConfig",
    "detect_host_triple",
    "load_config",
    "map_target",
    "resolve_nethost",
]
