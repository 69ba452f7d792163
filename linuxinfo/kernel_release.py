"""
Kernel release descriptors built from the /proc/version banner.

The variant is chosen by the caller when the descriptor is built. Each variant
has its own grammar; all of them share the base fields (version, compiled_by,
compiler, compiler_version, build_type, build_datetime) and may add their own.
A banner that does not match the selected grammar is a caller error and
raises KernelReleaseValidationError; there is no fallback to another variant.

Public exports:
    KernelVariant: Tag selecting the banner grammar
    KernelReleaseDescriptor: Immutable parsed kernel release
    parse_kernel_release: Build a descriptor from a banner string
    read_kernel_release: Build a descriptor from the configured version file
    detect_kernel_variant: Suggest a variant for the running distribution
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import distro

from linuxinfo.config import ProcFiles
from linuxinfo.errors import KernelReleaseValidationError
from linuxinfo.sources import read_source_lines


class KernelVariant(Enum):
    """Banner grammar selector."""
    GENERIC = "generic"
    ALPINE = "alpine"


@dataclass(frozen=True)
class KernelReleaseDescriptor:
    """
    Kernel release information parsed from a version banner.

    Attributes:
        raw: The banner as given.
        variant: Grammar used to parse the banner.
        version: Kernel release, e.g. '6.8.0-45-generic'.
        compiled_by: user@host that built the kernel.
        compiler: 'gcc' or 'clang'.
        compiler_version: Compiler version, e.g. '13.2.0'.
        build_type: Build flags, e.g. 'SMP PREEMPT_DYNAMIC'.
        build_datetime: Build timestamp as printed by the kernel.
        binutils_version: GNU ld version when the banner reports it.
        distro_patch: Distribution patch level (Alpine only).
        distro_package: Distribution package printed before the build date,
            e.g. 'Debian 6.1.76-1'.
        lts: Long-term support build (Alpine only).
    """
    raw: str
    variant: KernelVariant
    version: str
    compiled_by: str
    compiler: str
    compiler_version: str
    build_type: str
    build_datetime: str
    binutils_version: Optional[str] = None
    distro_patch: Optional[int] = None
    distro_package: Optional[str] = None
    lts: bool = False

    @property
    def mainline_version(self) -> Tuple[int, int, int]:
        """(major, minor, patch) of the upstream release, e.g. (6, 6, 31)."""
        match = _MAINLINE_RE.match(self.version)
        return int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)

    @property
    def major(self) -> int:
        return self.mainline_version[0]

    @property
    def minor(self) -> int:
        return self.mainline_version[1]

    @property
    def patch(self) -> int:
        return self.mainline_version[2]

    def is_lts(self) -> bool:
        return self.lts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = {k: v for k, v in self.__dict__.items() if v is not None}
        data['variant'] = self.variant.value
        return data


_MAINLINE_RE = re.compile(r'^(\d+)\.(\d+)(?:\.(\d+))?')

# Linux version 6.8.0-45-generic (buildd@lcy02-amd64-075) (x86_64-linux-gnu-gcc-13 (Ubuntu 13.2.0-23ubuntu4) 13.2.0,
#   GNU ld (GNU Binutils for Ubuntu) 2.42) #45-Ubuntu SMP PREEMPT_DYNAMIC Fri Aug 30 12:02:04 UTC 2024
_GENERIC_RE = re.compile(
    r'^Linux version (?P<version>\d+\.\d+(?:\.\d+)?\S*) '
    r'\((?P<compiled_by>[^()\s]+)\) '
    r'\((?P<toolchain>.+)\) '
    r'#\S+ '
    r'(?P<type>[A-Z][A-Z_]*(?: [A-Z][A-Z_]*)*) '
    r'(?P<build_datetime>\S.*?)\s*$'
)

# Linux version 6.6.31-0-lts (buildozer@build-3-19-x86_64) (gcc (Alpine 13.2.1_git20231014) 13.2.1 20231014,
#   GNU ld (GNU Binutils) 2.41) #1-Alpine SMP PREEMPT_DYNAMIC Fri, 17 May 2024 12:37:38 +0000
_ALPINE_RE = re.compile(
    r'^Linux version (?P<version>\d+\.\d+\.\d+-(?P<alpine_patch>\d+)(?:-(?P<flavor>[a-z]+))?) '
    r'\((?P<compiled_by>[\w.\-@]+)\) '
    r'\(gcc \(.*\) (?P<gcc_version>\d+\.\d+\.\d+) \d+, '
    r'GNU ld \(.*\) (?P<binutils_version>\d+\.\d+(?:\.\d+)?)\) '
    r'#\d+-Alpine '
    r'(?P<type>\w+ [\w+_]+) '
    r'(?P<build_datetime>\S.*?)\s*$'
)

_COMPILER_VERSION_RES = (
    re.compile(r'version (\d+(?:\.\d+)+)'),
    re.compile(r'\) (\d+(?:\.\d+)+)'),
)
# Debian prints its package version instead of a full timestamp:
#   ... #1 SMP PREEMPT_DYNAMIC Debian 6.1.76-1 (2024-02-01)
_DISTRO_PACKAGE_RE = re.compile(r'^(?P<package>[A-Z][A-Za-z]* \S+) \((?P<date>[^()]+)\)$')
_BINUTILS_RE = re.compile(r'GNU ld \(.*?\) (\d+(?:\.\d+)+)')
_LINKER_SPLIT_RE = re.compile(r',\s+(?:GNU ld|LLD|ld\.lld)\b')


def _fail(banner: str, variant: KernelVariant, reason: str):
    raise KernelReleaseValidationError(
        f"Kernel banner does not match the {variant.value} grammar: {reason}",
        banner=banner,
        variant=variant.value,
    )


def _parse_generic(banner: str) -> Dict[str, Any]:
    match = _GENERIC_RE.match(banner)
    if not match:
        _fail(banner, KernelVariant.GENERIC, "unrecognized layout")

    toolchain = match.group('toolchain')
    compiler_part = _LINKER_SPLIT_RE.split(toolchain)[0]
    if 'clang' in compiler_part:
        compiler = 'clang'
    elif 'gcc' in compiler_part:
        compiler = 'gcc'
    else:
        _fail(banner, KernelVariant.GENERIC, f"unknown compiler in '{compiler_part}'")

    compiler_version = None
    for regex in _COMPILER_VERSION_RES:
        version_match = regex.search(compiler_part)
        if version_match:
            compiler_version = version_match.group(1)
            break
    if compiler_version is None:
        _fail(banner, KernelVariant.GENERIC, f"no compiler version in '{compiler_part}'")

    binutils = _BINUTILS_RE.search(toolchain)
    build_datetime = match.group('build_datetime')
    distro_package = None
    package_match = _DISTRO_PACKAGE_RE.match(build_datetime)
    if package_match:
        distro_package = package_match.group('package')
        build_datetime = package_match.group('date')

    return {
        'version': match.group('version'),
        'compiled_by': match.group('compiled_by'),
        'compiler': compiler,
        'compiler_version': compiler_version,
        'build_type': match.group('type'),
        'build_datetime': build_datetime,
        'distro_package': distro_package,
        'binutils_version': binutils.group(1) if binutils else None,
    }


def _parse_alpine(banner: str) -> Dict[str, Any]:
    match = _ALPINE_RE.match(banner)
    if not match:
        _fail(banner, KernelVariant.ALPINE, "unrecognized layout")

    return {
        'version': match.group('version'),
        'compiled_by': match.group('compiled_by'),
        'compiler': 'gcc',
        'compiler_version': match.group('gcc_version'),
        'build_type': match.group('type'),
        'build_datetime': match.group('build_datetime'),
        'binutils_version': match.group('binutils_version'),
        'distro_patch': int(match.group('alpine_patch')),
        'lts': match.group('flavor') == 'lts',
    }


_PARSERS: Dict[KernelVariant, Callable[[str], Dict[str, Any]]] = {
    KernelVariant.GENERIC: _parse_generic,
    KernelVariant.ALPINE: _parse_alpine,
}


def parse_kernel_release(banner: str,
                         variant: KernelVariant = KernelVariant.GENERIC) -> KernelReleaseDescriptor:
    """
    Build a KernelReleaseDescriptor from a /proc/version banner.

    Args:
        banner: The banner line.
        variant: Grammar to validate the banner against.

    Returns:
        The descriptor.

    Raises:
        KernelReleaseValidationError: If the banner does not match the variant's grammar.

    Example:
        >>> release = parse_kernel_release(alpine_banner, KernelVariant.ALPINE)
        >>> release.distro_patch, release.is_lts()
        (0, True)
    """
    variant = KernelVariant(variant)
    banner = banner.strip()
    fields = _PARSERS[variant](banner)
    return KernelReleaseDescriptor(raw=banner, variant=variant, **fields)


def read_kernel_release(files: Optional[ProcFiles] = None,
                        variant: KernelVariant = KernelVariant.GENERIC) -> KernelReleaseDescriptor:
    """Build a descriptor from the configured version file (default /proc/version)."""
    lines = read_source_lines(files or ProcFiles(), 'version')
    banner = next((line for line in lines if line.strip()), '')
    return parse_kernel_release(banner, variant)


_DISTRO_VARIANTS = {
    'alpine': KernelVariant.ALPINE,
}


def detect_kernel_variant() -> KernelVariant:
    """Suggest the variant for the running distribution.

    Only a suggestion: descriptors are still built with an explicit variant.

    Examples:
        >>> detect_kernel_variant()  # on Alpine Linux
        <KernelVariant.ALPINE: 'alpine'>
    """
    return _DISTRO_VARIANTS.get(distro.id(), KernelVariant.GENERIC)
