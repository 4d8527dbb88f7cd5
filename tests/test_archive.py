"""
Selective extraction tests for the archive module.

This module contains tests for:
- Archive member name normalization and traversal rejection
- The three-part extraction filter (prefix, extension, name)
- Flattening extracted files to their base names
- Cleanup of partially written artifacts on failure
"""

from pathlib import PurePosixPath
from unittest.mock import Mock

import pytest

from nethost_fetch.archive import (
    ExtractionFilter,
    enclosed_name,
    extract_selected,
    fetch_archive,
)
from nethost_fetch.exceptions import DownloadFailedError, ExtractionFailedError
from nethost_fetch.resolver import is_already_resolved
from registry_test_utils import make_response, make_zip

TARGET = "linux-x64"
NATIVE = f"runtimes/{TARGET}/native"


@pytest.fixture
def nethost_filter():
    return ExtractionFilter.for_target(TARGET)


@pytest.fixture
def dest_dir(tmp_path):
    path = tmp_path / "nethost" / TARGET
    path.mkdir(parents=True)
    return path


class TestEnclosedName:
    @pytest.mark.parametrize(
        "name,expected",
        [
            (f"{NATIVE}/libnethost.a", f"{NATIVE}/libnethost.a"),
            ("runtimes\\win-x64\\native\\nethost.lib", "runtimes/win-x64/native/nethost.lib"),
            ("./runtimes//linux-x64/./native/libnethost.a", f"{NATIVE}/libnethost.a"),
        ],
    )
    def test_safe_names(self, name, expected):
        assert enclosed_name(name) == PurePosixPath(expected)

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "/etc/passwd",
            f"../{NATIVE}/libnethost.a",
            f"runtimes/../../{TARGET}/libnethost.a",
            "C:/Windows/nethost.lib",
            "C:nethost.lib",
            "nethost\x00.a",
            "./",
        ],
    )
    def test_unsafe_names(self, name):
        assert enclosed_name(name) is None


class TestExtractionFilter:
    def test_for_target_defaults(self, nethost_filter):
        assert nethost_filter.path_prefix == NATIVE
        assert nethost_filter.allowed_extensions == frozenset({"a", "lib", "pdb"})
        assert nethost_filter.name_substring == "nethost"

    def test_accepts_matching_entry(self, nethost_filter):
        assert nethost_filter.accepts(PurePosixPath(f"{NATIVE}/libnethost.a"))

    def test_prefix_rejects_entry(self, nethost_filter):
        path = PurePosixPath("runtimes/linux-musl-x64/native/libnethost.a")
        assert not nethost_filter.prefix_matches(path)
        assert nethost_filter.extension_allowed(path)
        assert nethost_filter.name_matches(path)
        assert not nethost_filter.accepts(path)

    def test_prefix_compares_whole_components(self, nethost_filter):
        assert not nethost_filter.accepts(PurePosixPath(f"{NATIVE}x/libnethost.a"))
        assert nethost_filter.accepts(PurePosixPath(f"{NATIVE}/sub/libnethost.a"))

    def test_extension_rejects_entry(self, nethost_filter):
        path = PurePosixPath(f"{NATIVE}/libnethost.so")
        assert nethost_filter.prefix_matches(path)
        assert nethost_filter.name_matches(path)
        assert not nethost_filter.extension_allowed(path)
        assert not nethost_filter.accepts(path)

    def test_extension_is_matched_exactly(self, nethost_filter):
        assert not nethost_filter.accepts(PurePosixPath(f"{NATIVE}/nethost.LIB"))
        assert not nethost_filter.accepts(PurePosixPath(f"{NATIVE}/libnethost.A"))

    def test_extensionless_entry_rejected(self, nethost_filter):
        assert not nethost_filter.accepts(PurePosixPath(f"{NATIVE}/nethost"))

    def test_name_rejects_entry(self, nethost_filter):
        path = PurePosixPath(f"{NATIVE}/libhostfxr.a")
        assert nethost_filter.prefix_matches(path)
        assert nethost_filter.extension_allowed(path)
        assert not nethost_filter.name_matches(path)
        assert not nethost_filter.accepts(path)

    def test_custom_extensions_normalized(self):
        custom = ExtractionFilter.for_target(TARGET, allowed_extensions=["A", "Lib"])
        assert custom.allowed_extensions == frozenset({"a", "lib"})


class TestExtractSelected:
    def test_extracts_only_matching_entries_flattened(self, dest_dir, nethost_filter):
        archive = make_zip(
            {
                f"{NATIVE}/libnethost.a": b"static",
                f"{NATIVE}/libnethost.pdb": b"symbols",
                f"{NATIVE}/nethost.h": b"header",
                f"{NATIVE}/libnethost.so": b"shared",
                f"{NATIVE}/libhostfxr.a": b"other",
                "runtimes/linux-arm64/native/libnethost.a": b"wrong arch",
                "readme.txt": b"readme",
            }
        )

        written = extract_selected(archive, dest_dir, nethost_filter)

        assert [p.name for p in written] == ["libnethost.a", "libnethost.pdb"]
        assert sorted(p.name for p in dest_dir.iterdir()) == ["libnethost.a", "libnethost.pdb"]
        assert (dest_dir / "libnethost.a").read_bytes() == b"static"

    def test_nested_entry_flattened_to_basename(self, dest_dir, nethost_filter):
        archive = make_zip({f"{NATIVE}/debug/libnethost.pdb": b"symbols"})
        written = extract_selected(archive, dest_dir, nethost_filter)
        assert written == [dest_dir / "libnethost.pdb"]

    def test_unsafe_members_skipped(self, tmp_path, dest_dir, nethost_filter):
        archive = make_zip(
            {
                f"../{NATIVE}/libnethost.a": b"escape",
                f"/{NATIVE}/libnethost.lib": b"absolute",
                f"{NATIVE}/nethost.lib": b"ok",
            }
        )
        written = extract_selected(archive, dest_dir, nethost_filter)
        assert [p.name for p in written] == ["nethost.lib"]
        assert not (tmp_path / "nethost" / "libnethost.a").exists()

    def test_no_matching_entries(self, dest_dir, nethost_filter):
        archive = make_zip({"readme.txt": b"readme"})
        assert extract_selected(archive, dest_dir, nethost_filter) == []
        assert list(dest_dir.iterdir()) == []

    def test_invalid_archive(self, dest_dir, nethost_filter):
        with pytest.raises(ExtractionFailedError) as exc_info:
            extract_selected(b"this is not a zip file", dest_dir, nethost_filter)
        assert exc_info.value.stage == "extraction"

    def test_failed_copy_removes_written_files(self, mocker, dest_dir, nethost_filter):
        archive = make_zip(
            {
                f"{NATIVE}/libnethost.a": b"static",
                f"{NATIVE}/libnethost.pdb": b"symbols",
            }
        )
        mocker.patch(
            "nethost_fetch.archive.shutil.copyfileobj",
            side_effect=[None, OSError("No space left on device")],
        )

        with pytest.raises(ExtractionFailedError) as exc_info:
            extract_selected(archive, dest_dir, nethost_filter)

        assert exc_info.value.member == f"{NATIVE}/libnethost.pdb"
        assert "No space left" in str(exc_info.value)
        assert list(dest_dir.iterdir()) == []
        assert list(dest_dir.parent.iterdir()) == [dest_dir]

    def test_interrupted_copy_leaves_destination_empty(self, mocker, dest_dir, nethost_filter):
        archive = make_zip(
            {
                f"{NATIVE}/libnethost.a": b"static",
                f"{NATIVE}/libnethost.pdb": b"symbols",
            }
        )
        mocker.patch(
            "nethost_fetch.archive.shutil.copyfileobj",
            side_effect=[None, KeyboardInterrupt()],
        )

        with pytest.raises(KeyboardInterrupt):
            extract_selected(archive, dest_dir, nethost_filter)

        # Whatever was staged stays outside the artifact directory
        assert not is_already_resolved(dest_dir)

    def test_creates_missing_destination(self, tmp_path, nethost_filter):
        dest = tmp_path / "out" / "nethost" / TARGET
        written = extract_selected(make_zip({f"{NATIVE}/libnethost.a": b"static"}), dest, nethost_filter)
        assert written == [dest / "libnethost.a"]
        assert list(dest.parent.iterdir()) == [dest]

    def test_populated_destination_is_not_overwritten(self, dest_dir, nethost_filter):
        (dest_dir / "libnethost.a").write_bytes(b"existing")
        with pytest.raises(ExtractionFailedError):
            extract_selected(make_zip({f"{NATIVE}/libnethost.a": b"new"}), dest_dir, nethost_filter)
        assert (dest_dir / "libnethost.a").read_bytes() == b"existing"
        assert list(dest_dir.parent.iterdir()) == [dest_dir]


class TestFetchArchive:
    def test_returns_bytes(self):
        client = Mock()
        client.get_bytes.return_value = b"PK"
        assert fetch_archive(client, "https://example.test/pkg.nupkg") == b"PK"
        client.get_bytes.assert_called_once_with("https://example.test/pkg.nupkg")

    def test_http_error(self, client):
        with pytest.raises(DownloadFailedError) as exc_info:
            fetch_archive(client, "https://example.test/missing.nupkg")
        assert exc_info.value.url == "https://example.test/missing.nupkg"

    def test_uses_session(self, fake_session, client):
        fake_session.routes["https://example.test/pkg.nupkg"] = make_response(content=b"PK\x03\x04")
        assert fetch_archive(client, "https://example.test/pkg.nupkg") == b"PK\x03\x04"
