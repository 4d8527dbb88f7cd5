"""
Catalog Walker

Reads a package's registration index, chooses the catalog page holding the
newest releases, and flattens the registry's two page shapes into a single
ordered list of catalog entries:

- ``catalog:CatalogRoot``: a root document embedding one or more pages
- ``catalog:CatalogPage``: a single page embedding entries directly

Small packages are usually served as a root with everything inlined, large
ones as separately fetched pages. Callers never see which one occurred.
"""

from typing import Any, List, Optional, Union

from nethost_fetch.constants import (
    CATALOG_PAGE_TYPE,
    CATALOG_ROOT_TYPE,
    CATALOG_TYPE_FIELD,
    REGISTRATION_INDEX_PATH,
)
from nethost_fetch.exceptions import UnsupportedCatalogShapeError
from nethost_fetch.log_utils import logger

from .http import RegistryClient
from .models import CatalogEntry, CatalogPage, CatalogRoot, RegistrationIndex
from .version import select_page

CatalogResponse = Union[CatalogRoot, CatalogPage]


def registration_index_url(base_url: str, package_id: str) -> str:
    """
    Compose the registration index URL for a package.

    The registration service expects lower-cased package ids appended directly
    to its base URL, which ends with a slash.
    """
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"
    return base_url + REGISTRATION_INDEX_PATH.format(package_id=package_id.lower())


def catalog_types(payload: Any, url: Optional[str] = None) -> List[str]:
    """
    Return the type discriminator values of a catalog document.

    The ``@type`` field may be a single string or an array of strings.

    Raises:
        UnsupportedCatalogShapeError: If the field is missing or malformed.
    """
    raw = payload.get(CATALOG_TYPE_FIELD) if isinstance(payload, dict) else None
    if isinstance(raw, str):
        return [raw]
    if isinstance(raw, list) and raw and all(isinstance(t, str) for t in raw):
        return list(raw)
    raise UnsupportedCatalogShapeError(
        "Encountered invalid @type field in catalog response",
        url=url,
        details=f"@type={raw!r}",
    )


def decode_catalog_response(payload: Any, url: Optional[str] = None) -> CatalogResponse:
    """
    Decode a catalog document into a CatalogPage or CatalogRoot.

    The discriminator is inspected before structural decoding; a page tag takes
    precedence over a root tag when both are present.

    Raises:
        UnsupportedCatalogShapeError: If neither known tag is present.
        InvalidRegistryResponseError: If the document does not match its tag's shape.
    """
    types = catalog_types(payload, url)
    if CATALOG_PAGE_TYPE in types:
        return CatalogPage.from_json(payload)
    if CATALOG_ROOT_TYPE in types:
        return CatalogRoot.from_json(payload)
    raise UnsupportedCatalogShapeError(
        "Unsupported catalog document type (unsupported registry version?)",
        url=url,
        types=types,
        details=f"@type={types}",
    )


class CatalogWalker:
    """
    Walks a package's registration data down to its catalog entries.

    Usage:
        walker = CatalogWalker(client)
        entries = walker.walk(registration_base_url, "runtime.linux-x64.microsoft.netcore.dotnetapphost")
    """

    def __init__(self, client: RegistryClient) -> None:
        self.client = client

    def fetch_registration_index(self, base_url: str, package_id: str) -> RegistrationIndex:
        url = registration_index_url(base_url, package_id)
        logger.info(f"Querying registration index for {package_id}")
        return RegistrationIndex.from_json(self.client.get_json(url))

    def fetch_page(self, url: str) -> CatalogResponse:
        return decode_catalog_response(self.client.get_json(url), url)

    def flatten(self, response: CatalogResponse) -> List[CatalogEntry]:
        """
        Flatten a page or root into its entries, preserving document order.

        Pages embedded in a root without inline items are fetched individually
        and must decode as pages.
        """
        if isinstance(response, CatalogPage):
            pages = [response]
        else:
            pages = response.pages

        entries: List[CatalogEntry] = []
        for page in pages:
            if page.items is None:
                page = self._fetch_nested_page(page)
            entries.extend(page.items or [])
        return entries

    def _fetch_nested_page(self, page: CatalogPage) -> CatalogPage:
        if not page.url:
            raise UnsupportedCatalogShapeError(
                "Catalog root embeds a page with neither items nor @id"
            )
        logger.debug(f"Fetching non-inlined catalog page {page.url}")
        nested = self.fetch_page(page.url)
        if not isinstance(nested, CatalogPage):
            raise UnsupportedCatalogShapeError(
                "Catalog root references another root",
                url=page.url,
                types=[CATALOG_ROOT_TYPE],
            )
        return nested

    def walk(self, base_url: str, package_id: str) -> List[CatalogEntry]:
        """
        Return the catalog entries of the page holding the package's newest releases.

        The page reference with the greatest upper bound is chosen before any page
        content is fetched. When the registry already inlined that page's entries
        into the index they are used directly instead of fetching the page again.

        Raises:
            RegistryUnreachableError: If a registry document cannot be fetched.
            InvalidRegistryResponseError: If a document is malformed or lists no pages.
            InvalidVersionFormatError: If a page's upper bound is not a semantic version.
            UnsupportedCatalogShapeError: If a page has an unknown type discriminator.
        """
        index = self.fetch_registration_index(base_url, package_id)
        reference = select_page(index.pages)
        logger.info(f"Selected catalog page with upper bound {reference.upper}")

        if reference.inline_items is not None:
            logger.debug("Using catalog entries inlined in the registration index")
            entries = [CatalogEntry.from_json(item) for item in reference.inline_items]
        else:
            entries = self.flatten(self.fetch_page(reference.url))

        logger.debug(f"Catalog page lists {len(entries)} release(s)")
        return entries
