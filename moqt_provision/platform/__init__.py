"""
Platform detection
"""

import sys
import platform
from pathlib import Path
from typing import Dict, Any


class PlatformDetector:
    """Detects and provides information about the current platform"""

    # Marker file -> distribution family, checked in order
    DIST_FILES = {
        "/etc/debian_version": "debian",
        "/etc/redhat-release": "rhel",
        "/etc/centos-release": "rhel",
        "/etc/fedora-release": "rhel",
        "/etc/rocky-release": "rhel",
        "/etc/almalinux-release": "rhel",
    }

    def __init__(self, root: Path = Path("/")):
        self.root = Path(root)

    def detect(self) -> Dict[str, Any]:
        """
        Detect current platform and architecture

        Returns:
            Dictionary with platform information
        """
        info = {
            "os": platform.system(),
            "platform": self._get_platform_name(),
            "arch": self._get_architecture(),
            "machine": platform.machine(),
            "python_version": sys.version.split()[0],
        }

        if info["platform"] == "linux":
            info["distribution"] = self.detect_linux_distribution()

        return info

    def _get_platform_name(self) -> str:
        system = platform.system().lower()
        if system == "darwin":
            return "macos"
        return system

    def _get_architecture(self) -> str:
        machine = platform.machine().lower()
        if machine in ["aarch64", "arm64"]:
            return "aarch64"
        elif machine in ["i386", "i686", "x86"]:
            return "x86"
        return "x64"

    def _path(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    def detect_linux_distribution(self) -> str:
        """Detect Linux distribution family (debian, rhel or unknown)"""
        for file_path, dist_name in self.DIST_FILES.items():
            if self._path(file_path).exists():
                return dist_name

        for file_path in ("/etc/os-release", "/etc/lsb-release"):
            try:
                content = self._path(file_path).read_text().lower()
            except OSError:
                continue
            if "debian" in content or "ubuntu" in content:
                return "debian"
            if any(x in content for x in ["rhel", "redhat", "centos", "fedora", "rocky", "alma"]):
                return "rhel"

        return "unknown"


__all__ = ["PlatformDetector"]
