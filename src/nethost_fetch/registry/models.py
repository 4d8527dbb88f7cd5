"""
Registry Data Model

Typed snapshots of the registry documents the resolver reads. Each model is
built fresh from a JSON payload per resolver run and never cached.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from nethost_fetch.constants import CATALOG_ID_FIELD, CATALOG_TYPE_FIELD
from nethost_fetch.exceptions import InvalidRegistryResponseError


def _require(payload: Any, key: str, expected: type, context: str) -> Any:
    """Return ``payload[key]`` when it exists and has the expected type."""
    if not isinstance(payload, dict):
        raise InvalidRegistryResponseError(
            f"Malformed {context}",
            details=f"expected an object, got {type(payload).__name__}",
        )
    value = payload.get(key)
    if not isinstance(value, expected):
        raise InvalidRegistryResponseError(
            f"Malformed {context}",
            details=f"field '{key}' is missing or not of type {expected.__name__}",
        )
    return value


@dataclass
class Resource:
    """A service advertised by the registry's service index."""

    url: str
    """Base URL of the service (``@id``)"""

    type: str
    """Resource type tag (``@type``), e.g. ``RegistrationsBaseUrl``"""

    @classmethod
    def from_json(cls, payload: Any) -> "Resource":
        return cls(
            url=_require(payload, CATALOG_ID_FIELD, str, "service index resource"),
            type=_require(payload, CATALOG_TYPE_FIELD, str, "service index resource"),
        )


@dataclass
class ServiceIndex:
    """The registry's well-known service index document."""

    resources: List[Resource] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "ServiceIndex":
        items = _require(payload, "resources", list, "service index")
        return cls(resources=[Resource.from_json(item) for item in items])


@dataclass
class CatalogEntry:
    """A single published release of the package."""

    version: str
    """Release version as published (semantic version string)"""

    content_url: str
    """URL of the release's package archive (``packageContent``)"""

    listed: bool = True
    """Whether the release is publicly visible; absent means listed"""

    @classmethod
    def from_json(cls, payload: Any) -> "CatalogEntry":
        # Registration leaves wrap the entry in "catalogEntry" and carry
        # packageContent next to it rather than inside it.
        inner = payload.get("catalogEntry", payload) if isinstance(payload, dict) else payload
        version = _require(inner, "version", str, "catalog entry")
        content_url = inner.get("packageContent") or payload.get("packageContent")
        if not isinstance(content_url, str) or not content_url:
            raise InvalidRegistryResponseError(
                "Malformed catalog entry",
                details=f"version {version} has no packageContent URL",
            )
        listed = inner.get("listed", True)
        if not isinstance(listed, bool):
            raise InvalidRegistryResponseError(
                "Malformed catalog entry",
                details=f"version {version} has non-boolean 'listed' value {listed!r}",
            )
        return cls(version=version, content_url=content_url, listed=listed)


@dataclass
class CatalogPage:
    """A page of catalog entries; ``items`` is None when not inlined."""

    url: Optional[str] = None
    lower: Optional[str] = None
    upper: Optional[str] = None
    items: Optional[List[CatalogEntry]] = None

    @classmethod
    def from_json(cls, payload: Any) -> "CatalogPage":
        if not isinstance(payload, dict):
            raise InvalidRegistryResponseError(
                "Malformed catalog page",
                details=f"expected an object, got {type(payload).__name__}",
            )
        raw_items = payload.get("items")
        items = None
        if raw_items is not None:
            if not isinstance(raw_items, list):
                raise InvalidRegistryResponseError(
                    "Malformed catalog page", details="'items' is not a list"
                )
            items = [CatalogEntry.from_json(item) for item in raw_items]
        return cls(
            url=payload.get(CATALOG_ID_FIELD),
            lower=payload.get("lower"),
            upper=payload.get("upper"),
            items=items,
        )


@dataclass
class CatalogRoot:
    """A root document directly embedding one or more pages."""

    pages: List[CatalogPage] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "CatalogRoot":
        items = _require(payload, "items", list, "catalog root")
        return cls(pages=[CatalogPage.from_json(item) for item in items])


@dataclass
class PageReference:
    """Pointer from the registration index to a catalog page."""

    url: str
    upper: str
    lower: Optional[str] = None
    inline_items: Optional[List[Dict[str, Any]]] = None
    """Raw page entries when the registry inlined them into the index"""

    @classmethod
    def from_json(cls, payload: Any) -> "PageReference":
        url = _require(payload, CATALOG_ID_FIELD, str, "registration page reference")
        upper = _require(payload, "upper", str, "registration page reference")
        inline = payload.get("items")
        return cls(
            url=url,
            upper=upper,
            lower=payload.get("lower"),
            inline_items=inline if isinstance(inline, list) else None,
        )


@dataclass
class RegistrationIndex:
    """The package's registration index: references to its catalog pages."""

    pages: List[PageReference] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "RegistrationIndex":
        items = _require(payload, "items", list, "registration index")
        return cls(pages=[PageReference.from_json(item) for item in items])
