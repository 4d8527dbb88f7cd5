"""
Tests for platform target mapping, triple parsing and host detection.
"""

from unittest.mock import patch

import pytest

from nethost_fetch.exceptions import UnsupportedPlatformError
from nethost_fetch.platform_target import (
    SUPPORTED_TARGETS,
    Arch,
    Env,
    Os,
    PlatformTriple,
    detect_host_triple,
    map_target,
)

SUPPORTED_MATRIX = [
    (Os.WINDOWS, Arch.X86, Env.MSVC, "win-x86"),
    (Os.WINDOWS, Arch.X86_64, Env.MSVC, "win-x64"),
    (Os.WINDOWS, Arch.ARM, Env.MSVC, "win-arm"),
    (Os.WINDOWS, Arch.ARM, Env.GNU, "win-arm"),
    (Os.WINDOWS, Arch.AARCH64, Env.NONE, "win-arm64"),
    (Os.LINUX, Arch.X86_64, Env.MUSL, "linux-musl-x64"),
    (Os.LINUX, Arch.ARM, Env.MUSL, "linux-musl-arm"),
    (Os.LINUX, Arch.AARCH64, Env.MUSL, "linux-musl-arm64"),
    (Os.LINUX, Arch.X86_64, Env.GNU, "linux-x64"),
    (Os.LINUX, Arch.X86_64, Env.NONE, "linux-x64"),
    (Os.LINUX, Arch.ARM, Env.GNU, "linux-arm"),
    (Os.LINUX, Arch.AARCH64, Env.GNU, "linux-arm64"),
    (Os.MACOS, Arch.X86_64, Env.NONE, "osx-x64"),
    (Os.MACOS, Arch.AARCH64, Env.NONE, "osx-arm64"),
]

UNSUPPORTED_MATRIX = [
    (Os.WINDOWS, Arch.X86, Env.GNU),
    (Os.WINDOWS, Arch.X86_64, Env.GNU),
    (Os.WINDOWS, Arch.X86_64, Env.NONE),
    (Os.LINUX, Arch.X86, Env.GNU),
    (Os.LINUX, Arch.RISCV64, Env.GNU),
    (Os.MACOS, Arch.X86, Env.NONE),
    (Os.MACOS, Arch.ARM, Env.NONE),
    (Os.FREEBSD, Arch.X86_64, Env.NONE),
    (Os.ANDROID, Arch.AARCH64, Env.NONE),
]


class TestMapTarget:
    @pytest.mark.parametrize("os_value,arch,env,expected", SUPPORTED_MATRIX)
    def test_supported_triples(self, os_value, arch, env, expected):
        target = map_target(os_value, arch, env)
        assert target == expected
        assert target in SUPPORTED_TARGETS

    @pytest.mark.parametrize("os_value,arch,env", UNSUPPORTED_MATRIX)
    def test_unsupported_triples(self, os_value, arch, env):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            map_target(os_value, arch, env)
        assert exc_info.value.os == os_value.value
        assert exc_info.value.arch == arch.value
        assert exc_info.value.env == env.value

    def test_musl_rule_checked_before_generic_linux(self):
        assert map_target("linux", "x86_64", "musl") == "linux-musl-x64"
        assert map_target("linux", "x86_64", "gnu") == "linux-x64"

    def test_accepts_names_and_aliases(self):
        assert map_target("Windows", "AMD64", "msvc") == "win-x64"
        assert map_target("darwin", "arm64") == "osx-arm64"
        assert map_target("linux", "armv7l", None) == "linux-arm"

    def test_unknown_name_rejected(self):
        with pytest.raises(UnsupportedPlatformError, match="Unknown os"):
            map_target("plan9", "x86_64")

    def test_error_stage(self):
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            map_target(Os.MACOS, Arch.X86)
        assert exc_info.value.stage == "platform mapping"


class TestPlatformTripleParse:
    @pytest.mark.parametrize(
        "triple,expected",
        [
            ("x86_64-pc-windows-msvc", "win-x64"),
            ("i686-pc-windows-msvc", "win-x86"),
            ("aarch64-pc-windows-msvc", "win-arm64"),
            ("thumbv7a-pc-windows-msvc", "win-arm"),
            ("x86_64-unknown-linux-gnu", "linux-x64"),
            ("x86_64-unknown-linux-musl", "linux-musl-x64"),
            ("armv7-unknown-linux-gnueabihf", "linux-arm"),
            ("armv7-unknown-linux-musleabihf", "linux-musl-arm"),
            ("aarch64-unknown-linux-musl", "linux-musl-arm64"),
            ("x86_64-apple-darwin", "osx-x64"),
            ("aarch64-apple-darwin", "osx-arm64"),
        ],
    )
    def test_parse_supported(self, triple, expected):
        assert PlatformTriple.parse(triple).target == expected

    def test_parse_components(self):
        triple = PlatformTriple.parse("x86_64-unknown-linux-musl")
        assert triple == PlatformTriple(Os.LINUX, Arch.X86_64, Env.MUSL)
        assert str(triple) == "linux/x86_64/musl"

    def test_parse_android_is_not_linux(self):
        triple = PlatformTriple.parse("aarch64-linux-android")
        assert triple.os is Os.ANDROID
        with pytest.raises(UnsupportedPlatformError):
            _ = triple.target

    def test_parse_windows_gnu_x64_is_unsupported(self):
        triple = PlatformTriple.parse("x86_64-pc-windows-gnu")
        assert triple.env is Env.GNU
        with pytest.raises(UnsupportedPlatformError):
            _ = triple.target

    @pytest.mark.parametrize("triple", ["", "x86_64", "sparc-sun-solaris", "x86_64-unknown-haiku"])
    def test_parse_rejects_unknown(self, triple):
        with pytest.raises(UnsupportedPlatformError):
            PlatformTriple.parse(triple)

    def test_link_library(self):
        assert PlatformTriple.of("windows", "x86_64", "msvc").link_library == "libnethost"
        assert PlatformTriple.of("linux", "x86_64").link_library == "nethost"


class TestDetectHostTriple:
    def test_windows_host(self):
        with patch("platform.system", return_value="Windows"), patch(
            "platform.machine", return_value="AMD64"
        ):
            triple = detect_host_triple()
        assert triple == PlatformTriple(Os.WINDOWS, Arch.X86_64, Env.MSVC)

    def test_glibc_linux_host(self):
        with patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="x86_64"
        ), patch("platform.libc_ver", return_value=("glibc", "2.36")):
            triple = detect_host_triple()
        assert triple.target == "linux-x64"

    def test_musl_linux_host(self):
        with patch("platform.system", return_value="Linux"), patch(
            "platform.machine", return_value="aarch64"
        ), patch("platform.libc_ver", return_value=("", "")), patch(
            "nethost_fetch.platform_target.glob.glob",
            return_value=["/lib/ld-musl-aarch64.so.1"],
        ):
            triple = detect_host_triple()
        assert triple.target == "linux-musl-arm64"

    def test_macos_host(self):
        with patch("platform.system", return_value="Darwin"), patch(
            "platform.machine", return_value="arm64"
        ):
            triple = detect_host_triple()
        assert triple.target == "osx-arm64"

    def test_unknown_host(self):
        with patch("platform.system", return_value="SunOS"), patch(
            "platform.machine", return_value="sparc"
        ):
            with pytest.raises(UnsupportedPlatformError):
                detect_host_triple()
