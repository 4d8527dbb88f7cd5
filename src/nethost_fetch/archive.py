"""
Archive fetching and selective extraction.

The package archive is downloaded into memory and only the entries that
pass a three-part filter (runtime directory prefix, extension allow-list,
library name substring) are written to the destination directory, flattened
to their bare file names.
"""

import io
import os
import shutil
import tempfile
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import FrozenSet, Iterable, List, Optional

from nethost_fetch.constants import (
    ALLOWED_EXTENSIONS,
    DEFAULT_CHUNK_SIZE,
    LIBRARY_NAME,
    RUNTIME_DIR_TEMPLATE,
)
from nethost_fetch.exceptions import ExtractionFailedError
from nethost_fetch.log_utils import logger
from nethost_fetch.registry.http import RegistryClient


def fetch_archive(client: RegistryClient, url: str) -> bytes:
    """
    Download the package archive at ``url`` fully into memory.

    Raises:
        DownloadFailedError: On network failure or an HTTP error status.
    """
    logger.info(f"Downloading package archive from {url}")
    data = client.get_bytes(url)
    logger.info(f"Downloaded {len(data)} bytes")
    return data


def enclosed_name(member_name: str) -> Optional[PurePosixPath]:
    """
    Return the normalized relative path of an archive member, or None when unsafe.

    Members that are empty, absolute, carry a drive letter or null byte, or use
    ``..`` components are rejected. ``.`` components and doubled separators are
    dropped.
    """
    if not member_name or "\x00" in member_name:
        return None
    name = member_name.replace("\\", "/")
    if name.startswith("/"):
        return None

    parts = [part for part in name.split("/") if part not in ("", ".")]
    if not parts or ".." in parts or ":" in parts[0]:
        return None
    return PurePosixPath(*parts)


@dataclass(frozen=True)
class ExtractionFilter:
    """
    Per-entry filter applied to archive members.

    An entry survives only if its path starts with ``path_prefix`` (compared by
    path components), its extension is exactly one of ``allowed_extensions``,
    and its name without extension contains ``name_substring``.
    """

    path_prefix: str
    allowed_extensions: FrozenSet[str]
    name_substring: str

    @classmethod
    def for_target(
        cls,
        target: str,
        name_substring: str = LIBRARY_NAME,
        allowed_extensions: Iterable[str] = ALLOWED_EXTENSIONS,
    ) -> "ExtractionFilter":
        return cls(
            path_prefix=RUNTIME_DIR_TEMPLATE.format(target=target),
            allowed_extensions=frozenset(ext.lower() for ext in allowed_extensions),
            name_substring=name_substring,
        )

    def prefix_matches(self, path: PurePosixPath) -> bool:
        prefix_parts = PurePosixPath(self.path_prefix).parts
        return path.parts[: len(prefix_parts)] == prefix_parts

    def extension_allowed(self, path: PurePosixPath) -> bool:
        suffix = path.suffix
        if not suffix:
            return False
        return suffix[1:] in self.allowed_extensions

    def name_matches(self, path: PurePosixPath) -> bool:
        return self.name_substring in path.stem

    def accepts(self, path: PurePosixPath) -> bool:
        return (
            self.prefix_matches(path)
            and self.extension_allowed(path)
            and self.name_matches(path)
        )


def _discard(staging_dir: Path) -> None:
    try:
        shutil.rmtree(staging_dir)
    except OSError as e:
        logger.debug(f"Could not remove staging directory {staging_dir}: {e}")


def _copy_member(
    archive: zipfile.ZipFile, info: zipfile.ZipInfo, target_path: Path
) -> None:
    with open(target_path, "wb") as target, archive.open(info) as source:
        shutil.copyfileobj(source, target, DEFAULT_CHUNK_SIZE)


def _publish(staging_dir: Path, dest_dir: Path) -> None:
    """Rename the populated staging directory to ``dest_dir`` in one step."""
    if dest_dir.exists():
        # Only an empty directory can be replaced; a populated one is already resolved
        dest_dir.rmdir()
    os.replace(staging_dir, dest_dir)


def extract_selected(
    archive_bytes: bytes, dest_dir: Path, extraction_filter: ExtractionFilter
) -> List[Path]:
    """
    Extract the archive entries accepted by ``extraction_filter`` into ``dest_dir``.

    Entries with unsafe names are skipped. Accepted entries are written under
    their base file name only. Files are first written to a staging directory
    next to ``dest_dir``, which is renamed into place once every entry has been
    copied. ``dest_dir`` therefore never holds a partial artifact set, even if
    the process dies mid-copy, and is left as it was on failure.

    Parameters:
        archive_bytes: The complete zip archive.
        dest_dir: Destination directory; it must be missing or empty.
        extraction_filter: Filter deciding which entries to keep.

    Returns:
        List[Path]: Paths of the written files, in archive order.

    Raises:
        ExtractionFailedError: If the archive is not a valid zip file or an entry
            cannot be decompressed or written.
    """
    dest_dir = Path(dest_dir)
    names: List[str] = []

    try:
        archive = zipfile.ZipFile(io.BytesIO(archive_bytes))
    except zipfile.BadZipFile as e:
        raise ExtractionFailedError(
            "Downloaded package is not a valid zip archive", details=str(e)
        ) from e

    try:
        dest_dir.parent.mkdir(parents=True, exist_ok=True)
        staging_dir = Path(
            tempfile.mkdtemp(
                dir=str(dest_dir.parent), prefix=f".{dest_dir.name}-", suffix=".staging"
            )
        )
    except OSError as e:
        raise ExtractionFailedError(
            "Could not create staging directory", details=str(e)
        ) from e

    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue

            path = enclosed_name(info.filename)
            if path is None:
                logger.debug(f"Skipping unsafe archive member {info.filename!r}")
                continue
            if not extraction_filter.accepts(path):
                logger.debug(f"Skipping archive member {path}")
                continue

            if path.name in names:
                logger.warning(
                    f"Archive member {path} overwrites {path.name} extracted earlier"
                )
            try:
                _copy_member(archive, info, staging_dir / path.name)
            except (zipfile.BadZipFile, zlib.error, OSError, RuntimeError) as e:
                _discard(staging_dir)
                raise ExtractionFailedError(
                    f"Failed to extract {path.name}",
                    member=info.filename,
                    details=str(e),
                ) from e

            if path.name not in names:
                names.append(path.name)
            logger.debug(f"Extracted {info.filename} to {path.name}")

    if not names:
        _discard(staging_dir)
        logger.warning(
            f"No archive entries matched {extraction_filter.path_prefix}; nothing extracted"
        )
        return []

    try:
        _publish(staging_dir, dest_dir)
    except OSError as e:
        _discard(staging_dir)
        raise ExtractionFailedError(
            f"Could not move extracted files into {dest_dir}", details=str(e)
        ) from e

    logger.info(f"Extracted {len(names)} file(s): {', '.join(names)}")
    return [dest_dir / name for name in names]
