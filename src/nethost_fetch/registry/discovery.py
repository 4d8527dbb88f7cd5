"""Registry endpoint discovery: locate the registration service in the service index."""

from typing import Optional

from nethost_fetch.exceptions import RegistryEndpointNotFoundError
from nethost_fetch.log_utils import logger

from .http import RegistryClient
from .models import ServiceIndex


def find_resource_url(
    index: ServiceIndex, resource_type: str, index_url: Optional[str] = None
) -> str:
    """
    Return the URL of the first resource whose type tag equals ``resource_type``.

    Matching is exact: versioned tags such as ``RegistrationsBaseUrl/3.6.0`` are
    distinct services and are not considered.

    Raises:
        RegistryEndpointNotFoundError: If no resource carries the tag.
    """
    for resource in index.resources:
        if resource.type == resource_type:
            return resource.url
    raise RegistryEndpointNotFoundError(
        "Unable to find the registry query endpoint",
        url=index_url,
        resource_type=resource_type,
        details=f"service index lists no '{resource_type}' resource",
    )


def discover_registration_base_url(
    client: RegistryClient, service_index_url: str, resource_type: str
) -> str:
    """
    Fetch the service index and return the registration service base URL.

    Raises:
        RegistryUnreachableError: If the index cannot be fetched.
        InvalidRegistryResponseError: If the index is not a valid service index.
        RegistryEndpointNotFoundError: If the registration resource is absent.
    """
    payload = client.get_json(service_index_url)
    index = ServiceIndex.from_json(payload)
    base_url = find_resource_url(index, resource_type, service_index_url)
    logger.info(f"Registry endpoint found: {base_url}")
    return base_url
