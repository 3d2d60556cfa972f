"""
Host platform detection for selecting native grammar builds.

Both functions accept the values reported by the platform module as optional
arguments so every branch can be exercised from tests.
"""

import platform as _platform
from typing import Optional

_ARCH_ALIASES = {
    'amd64': 'x86_64',
    'x64': 'x86_64',
    'x86-64': 'x86_64',
    'i386': 'x86',
    'i686': 'x86',
    'arm64': 'arm64',
    'aarch64': 'aarch64',
}


def _os_family(system: str) -> str:
    system = system.lower()
    if system.startswith('darwin') or 'mac' in system:
        return 'macos'
    if system.startswith('win') or system.startswith('cygwin') or system.startswith('msys'):
        return 'windows'
    if system.startswith('linux'):
        return 'linux'
    return system or 'unknown'


def platform_name(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    """
    Platform identifier for the running (or given) OS and architecture.

    Examples:
        >>> platform_name("Linux", "x86_64")
        'linux-x86_64'
        >>> platform_name("Darwin", "arm64")
        'macos-arm64'
        >>> platform_name("Windows", "AMD64")
        'windows-x86_64'
    """
    system = _platform.system() if system is None else system
    machine = _platform.machine() if machine is None else machine
    arch = machine.lower()
    arch = _ARCH_ALIASES.get(arch, arch) or 'unknown'
    return f"{_os_family(system)}-{arch}"


def platform_library_extension(system: Optional[str] = None) -> str:
    """
    Native shared library suffix for the running (or given) OS.

    Returns:
        ".dylib" on macOS, ".dll" on Windows, ".so" otherwise
    """
    system = _platform.system() if system is None else system
    family = _os_family(system)
    if family == 'macos':
        return '.dylib'
    if family == 'windows':
        return '.dll'
    return '.so'
