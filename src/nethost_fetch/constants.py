"""
Constants and configuration values for nethost-fetch.

This module contains the registry URLs, package naming rules, extraction
filters, and logging settings used throughout the resolver.
"""

# Registry (NuGet V3) endpoints and contract values
NUGET_SERVICE_INDEX_URL = "https://api.nuget.org/v3/index.json"
REGISTRATIONS_RESOURCE_TYPE = "RegistrationsBaseUrl"
PACKAGE_ID_TEMPLATE = "runtime.{target}.microsoft.netcore.dotnetapphost"
REGISTRATION_INDEX_PATH = "{package_id}/index.json"

# Catalog document type discriminators
CATALOG_TYPE_FIELD = "@type"
CATALOG_ID_FIELD = "@id"
CATALOG_PAGE_TYPE = "catalog:CatalogPage"
CATALOG_ROOT_TYPE = "catalog:CatalogRoot"

HEADERS_JSON = {"Accept": "application/json"}

# Archive layout and extraction filter
ARTIFACT_DIR_NAME = "nethost"
RUNTIME_DIR_TEMPLATE = "runtimes/{target}/native"
LIBRARY_NAME = "nethost"
ALLOWED_EXTENSIONS = frozenset({"a", "lib", "pdb"})
DEFAULT_CHUNK_SIZE = 8192

# Link library names reported back to the build
WINDOWS_LINK_LIBRARY = "libnethost"
DEFAULT_LINK_LIBRARY = "nethost"

# Configuration
CONFIG_DIR_NAME = "nethost-fetch"
CONFIG_FILE_NAME = "nethost-fetch.yaml"

# Environment variable names
OUT_DIR_ENV_VAR = "NETHOST_FETCH_OUT_DIR"
BUILD_OUT_DIR_ENV_VAR = "OUT_DIR"
SERVICE_INDEX_ENV_VAR = "NETHOST_FETCH_SERVICE_INDEX"
TIMEOUT_ENV_VAR = "NETHOST_FETCH_TIMEOUT"
DOWNLOAD_ENV_VAR = "NETHOST_FETCH_DOWNLOAD"
LOG_LEVEL_ENV_VAR = "NETHOST_FETCH_LOG_LEVEL"

# Logging configuration
LOGGER_NAME = "nethost_fetch"
LOG_FILE_NAME = "nethost-fetch.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
