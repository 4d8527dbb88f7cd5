"""
Resolution Orchestrator

Runs the full pipeline for one build: map the platform to a target
identifier, short-circuit when the artifact directory is already populated,
otherwise discover the registry endpoint, walk the catalog, select the newest
listed release, download it and extract the nethost libraries.

Concurrent runs against the same output directory are not coordinated; a
build orchestrator invoking the resolver in parallel must serialise them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from nethost_fetch.archive import ExtractionFilter, extract_selected, fetch_archive
from nethost_fetch.config import ResolverConfig
from nethost_fetch.constants import ARTIFACT_DIR_NAME
from nethost_fetch.exceptions import FileSystemError
from nethost_fetch.log_utils import logger
from nethost_fetch.platform_target import PlatformTriple, detect_host_triple
from nethost_fetch.registry.catalog import CatalogWalker
from nethost_fetch.registry.discovery import discover_registration_base_url
from nethost_fetch.registry.http import RegistryClient
from nethost_fetch.registry.version import select_latest_listed


@dataclass
class ResolutionResult:
    """Outcome of a resolver run, reported back to the build."""

    target: str
    """Registry target identifier, e.g. 'linux-x64'"""

    link_library: str
    """Library name the linker should be asked for"""

    directory: Optional[Path] = None
    """Library search path holding the artifacts (None when downloads are disabled)"""

    version: Optional[str] = None
    """Package version that was downloaded (None when nothing was downloaded)"""

    extracted_files: List[Path] = field(default_factory=list)
    """Files written by this run"""

    was_skipped: bool = False
    """Whether the pipeline was short-circuited without network access"""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "link_library": self.link_library,
            "directory": str(self.directory) if self.directory is not None else None,
            "version": self.version,
            "extracted_files": [str(p) for p in self.extracted_files],
            "was_skipped": self.was_skipped,
        }


def artifact_dir(out_dir: Path, target: str) -> Path:
    return Path(out_dir) / ARTIFACT_DIR_NAME / target


def is_already_resolved(directory: Path) -> bool:
    """Return True if ``directory`` exists and contains at least one entry."""
    if not directory.is_dir():
        return False
    try:
        return any(directory.iterdir())
    except OSError as e:
        raise FileSystemError(
            "Could not inspect artifact directory", path=str(directory), details=str(e)
        ) from e


class NethostResolver:
    """
    Resolves the nethost native library for a platform into a local directory.

    The registry client is created per run unless one is injected; an injected
    client is left open for the caller to close.
    """

    def __init__(
        self, config: ResolverConfig, client: Optional[RegistryClient] = None
    ) -> None:
        self.config = config
        self._client = client

    def resolve(self, triple: Optional[PlatformTriple] = None) -> ResolutionResult:
        """
        Resolve the artifact directory for ``triple`` (the host when omitted).

        Returns:
            ResolutionResult: The directory to register as a library search path.

        Raises:
            NethostFetchError: Any stage failure, propagated unchanged.
        """
        if triple is None:
            triple = detect_host_triple()
        target = triple.target
        logger.info(f"Resolving nethost for {triple} (target {target})")

        if not self.config.download_enabled:
            logger.info("Registry download disabled; skipping artifact resolution")
            return ResolutionResult(
                target=target, link_library=triple.link_library, was_skipped=True
            )

        directory = artifact_dir(self.config.out_dir, target)
        if is_already_resolved(directory):
            logger.info(f"Skipped: {directory} already populated")
            return ResolutionResult(
                target=target,
                link_library=triple.link_library,
                directory=directory,
                was_skipped=True,
            )

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                "Could not create artifact directory", path=str(directory), details=str(e)
            ) from e

        if self._client is not None:
            version, files = self._download(self._client, target, directory)
        else:
            with RegistryClient(timeout=self.config.request_timeout) as client:
                version, files = self._download(client, target, directory)

        return ResolutionResult(
            target=target,
            link_library=triple.link_library,
            directory=directory,
            version=version,
            extracted_files=files,
        )

    def _download(
        self, client: RegistryClient, target: str, directory: Path
    ) -> Tuple[str, List[Path]]:
        config = self.config
        base_url = discover_registration_base_url(
            client, config.service_index_url, config.registration_resource_type
        )
        entries = CatalogWalker(client).walk(base_url, config.package_id(target))
        entry = select_latest_listed(entries)

        data = fetch_archive(client, entry.content_url)
        extraction_filter = ExtractionFilter.for_target(
            target,
            name_substring=config.library_name,
            allowed_extensions=config.allowed_extensions,
        )
        files = extract_selected(data, directory, extraction_filter)
        return entry.version, files


def resolve_nethost(
    config: ResolverConfig,
    triple: Optional[PlatformTriple] = None,
    client: Optional[RegistryClient] = None,
) -> ResolutionResult:
    """Convenience wrapper around ``NethostResolver(config, client).resolve(triple)``."""
    return NethostResolver(config, client).resolve(triple)
