"""
Registry access for nethost-fetch.

This package provides the registry half of the resolver:
- http.py: RegistryClient, plain GET transport for JSON documents and archives
- models.py: typed snapshots of service index, registration and catalog documents
- discovery.py: registration endpoint lookup in the service index
- catalog.py: registration index walking and Root/Page normalization
- version.py: semantic-version parsing, page and release selection
"""

from .catalog import CatalogWalker, decode_catalog_response, registration_index_url
from .discovery import discover_registration_base_url, find_resource_url
from .http import RegistryClient
from .models import (
    CatalogEntry,
    CatalogPage,
    CatalogRoot,
    PageReference,
    RegistrationIndex,
    Resource,
    ServiceIndex,
)
from .version import (
    compare_versions,
    parse_version,
    select_latest_listed,
    select_page,
    sort_versions,
)

__all__ = [
    "CatalogEntry",
    "CatalogPage",
    "CatalogRoot",
    "CatalogWalker",
    "PageReference",
    "RegistrationIndex",
    "RegistryClient",
    "Resource",
    "ServiceIndex",
    "compare_versions",
    "decode_catalog_response",
    "discover_registration_base_url",
    "find_resource_url",
    "parse_version",
    "registration_index_url",
    "select_latest_listed",
    "select_page",
    "sort_versions",
]
