"""
Platform Target Mapping

This module maps an (OS, architecture, environment) triple onto the runtime
identifier the registry uses to publish platform-specific nethost packages,
e.g. ``linux-musl-x64`` or ``win-arm64``.

Triples come from the build system (a target triple such as
``x86_64-unknown-linux-musl``) or from host detection when the resolver is run
standalone.
"""

import glob
import platform
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Type, TypeVar, Union

from nethost_fetch.constants import DEFAULT_LINK_LIBRARY, WINDOWS_LINK_LIBRARY
from nethost_fetch.exceptions import UnsupportedPlatformError
from nethost_fetch.log_utils import logger


class Os(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"
    FREEBSD = "freebsd"
    ANDROID = "android"


class Arch(str, Enum):
    X86 = "x86"
    X86_64 = "x86_64"
    ARM = "arm"
    AARCH64 = "aarch64"
    RISCV64 = "riscv64"


class Env(str, Enum):
    NONE = "none"
    GNU = "gnu"
    MSVC = "msvc"
    MUSL = "musl"


_OS_ALIASES: Dict[str, Os] = {
    "win": Os.WINDOWS,
    "win32": Os.WINDOWS,
    "darwin": Os.MACOS,
    "macosx": Os.MACOS,
    "osx": Os.MACOS,
}

_ARCH_ALIASES: Dict[str, Arch] = {
    "i386": Arch.X86,
    "i586": Arch.X86,
    "i686": Arch.X86,
    "x86-64": Arch.X86_64,
    "x64": Arch.X86_64,
    "amd64": Arch.X86_64,
    "arm64": Arch.AARCH64,
    "armv6": Arch.ARM,
    "armv7": Arch.ARM,
    "armv7l": Arch.ARM,
    "armv7a": Arch.ARM,
    "armhf": Arch.ARM,
}

_ENV_ALIASES: Dict[str, Env] = {
    "": Env.NONE,
    "glibc": Env.GNU,
}

# Ordered: ABI-specific rules for an OS come before its ABI-agnostic fallbacks.
# An env of None matches any environment.
_TARGET_RULES: Tuple[Tuple[Os, Arch, Optional[Env], str], ...] = (
    (Os.WINDOWS, Arch.X86, Env.MSVC, "win-x86"),
    (Os.WINDOWS, Arch.X86_64, Env.MSVC, "win-x64"),
    (Os.WINDOWS, Arch.ARM, None, "win-arm"),
    (Os.WINDOWS, Arch.AARCH64, None, "win-arm64"),
    (Os.LINUX, Arch.X86_64, Env.MUSL, "linux-musl-x64"),
    (Os.LINUX, Arch.ARM, Env.MUSL, "linux-musl-arm"),
    (Os.LINUX, Arch.AARCH64, Env.MUSL, "linux-musl-arm64"),
    (Os.LINUX, Arch.X86_64, None, "linux-x64"),
    (Os.LINUX, Arch.ARM, None, "linux-arm"),
    (Os.LINUX, Arch.AARCH64, None, "linux-arm64"),
    (Os.MACOS, Arch.X86_64, None, "osx-x64"),
    (Os.MACOS, Arch.AARCH64, None, "osx-arm64"),
)

SUPPORTED_TARGETS = tuple(rule[3] for rule in _TARGET_RULES)

E = TypeVar("E", bound=Enum)


def _coerce(enum_cls: Type[E], value: Union[str, E], aliases: Dict[str, E]) -> E:
    """Convert a name or alias into a member of ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().lower()
    if key in aliases:
        return aliases[key]
    try:
        return enum_cls(key)
    except ValueError:
        raise UnsupportedPlatformError(
            f"Unknown {enum_cls.__name__.lower()} '{value}'",
            details=f"expected one of: {', '.join(m.value for m in enum_cls)}",
        ) from None


def parse_os(value: Union[str, Os]) -> Os:
    return _coerce(Os, value, _OS_ALIASES)


def parse_arch(value: Union[str, Arch]) -> Arch:
    return _coerce(Arch, value, _ARCH_ALIASES)


def parse_env(value: Union[str, Env, None]) -> Env:
    if value is None:
        return Env.NONE
    return _coerce(Env, value, _ENV_ALIASES)


def map_target(
    os: Union[str, Os], arch: Union[str, Arch], env: Union[str, Env, None] = None
) -> str:
    """
    Return the registry runtime identifier for a platform triple.

    Rules are checked in order and the first match wins. There is no default:
    a combination outside the supported matrix is rejected rather than guessed.

    Parameters:
        os: Operating system (enum member or name).
        arch: CPU architecture (enum member or name).
        env: ABI/environment (enum member, name, or None for no environment).

    Returns:
        str: The target identifier, e.g. ``"linux-x64"``.

    Raises:
        UnsupportedPlatformError: If no rule matches the triple.
    """
    os_value, arch_value, env_value = parse_os(os), parse_arch(arch), parse_env(env)

    for rule_os, rule_arch, rule_env, target in _TARGET_RULES:
        if rule_os is not os_value or rule_arch is not arch_value:
            continue
        if rule_env is not None and rule_env is not env_value:
            continue
        return target

    raise UnsupportedPlatformError(
        "Platform not supported",
        os=os_value.value,
        arch=arch_value.value,
        env=env_value.value,
        details=f"no nethost package for {os_value.value}/{arch_value.value}/{env_value.value}",
    )


@dataclass(frozen=True)
class PlatformTriple:
    """An (OS, architecture, environment) triple describing a build target."""

    os: Os
    arch: Arch
    env: Env = Env.NONE

    @classmethod
    def of(
        cls,
        os: Union[str, Os],
        arch: Union[str, Arch],
        env: Union[str, Env, None] = None,
    ) -> "PlatformTriple":
        return cls(parse_os(os), parse_arch(arch), parse_env(env))

    @classmethod
    def parse(cls, triple: str) -> "PlatformTriple":
        """
        Parse a build-system target triple such as ``aarch64-apple-darwin``.

        The first component is the architecture; the OS is the first later
        component naming a known system; a trailing ``gnu*``, ``musl*`` or
        ``msvc`` component selects the environment.

        Raises:
            UnsupportedPlatformError: If the architecture or OS is unknown.
        """
        parts = [part for part in triple.strip().lower().split("-") if part]
        if len(parts) < 2:
            raise UnsupportedPlatformError(
                f"Malformed target triple '{triple}'",
                details="expected <arch>-<vendor>-<os>[-<env>]",
            )

        arch_name = parts[0]
        if arch_name.startswith(("armv", "thumbv")):
            arch_name = "arm"
        elif arch_name.startswith("riscv64"):
            arch_name = "riscv64"
        arch = parse_arch(arch_name)

        os_value: Optional[Os] = None
        if any("android" in part for part in parts[1:]):
            os_value = Os.ANDROID
        for part in parts[1:]:
            if os_value is not None:
                break
            try:
                os_value = parse_os(part)
            except UnsupportedPlatformError:
                continue
        if os_value is None:
            raise UnsupportedPlatformError(
                f"Could not determine the operating system of '{triple}'",
                arch=arch.value,
            )

        env = Env.NONE
        last = parts[-1]
        if last.startswith("musl"):
            env = Env.MUSL
        elif last.startswith("gnu"):
            env = Env.GNU
        elif last == "msvc":
            env = Env.MSVC

        return cls(os_value, arch, env)

    @property
    def target(self) -> str:
        return map_target(self.os, self.arch, self.env)

    @property
    def link_library(self) -> str:
        """Name of the static library the linker is asked for on this platform."""
        return WINDOWS_LINK_LIBRARY if self.os is Os.WINDOWS else DEFAULT_LINK_LIBRARY

    def __str__(self) -> str:
        return f"{self.os.value}/{self.arch.value}/{self.env.value}"


def _detect_linux_env() -> Env:
    libc, _ = platform.libc_ver()
    if libc == "glibc":
        return Env.GNU
    if "musl" in libc or glob.glob("/lib/ld-musl-*"):
        return Env.MUSL
    return Env.GNU


def detect_host_triple() -> PlatformTriple:
    """
    Derive a platform triple for the running interpreter.

    Windows hosts are reported as MSVC, Linux hosts as glibc or musl depending on
    the C library found, and macOS hosts without an environment.

    Raises:
        UnsupportedPlatformError: If the OS or machine type is not recognised.
    """
    system = platform.system()
    machine = platform.machine()
    logger.debug(f"Detecting host platform: system={system} machine={machine}")

    os_value = parse_os(system)
    arch = parse_arch(machine)
    if os_value is Os.WINDOWS:
        env = Env.MSVC
    elif os_value is Os.LINUX:
        env = _detect_linux_env()
    else:
        env = Env.NONE
    return PlatformTriple(os_value, arch, env)
