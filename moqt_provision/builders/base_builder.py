"""
Base builder class that all builders inherit from
"""

import os
import subprocess
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..config import Target


class BaseBuilder(ABC):
    """Abstract base class for all builders"""

    def __init__(self,
                 target: Target,
                 logger: Any,
                 dry_run: bool = False):
        """
        Initialize base builder

        Args:
            target: Resolved target configuration
            logger: Logger instance
            dry_run: If True, don't actually run commands
        """
        self.target = target
        self.name = target.name
        self.source_dir = target.source_dir
        self.build_dir = target.build_dir
        self.install_prefix = target.install_prefix
        self.logger = logger
        self.dry_run = dry_run

        self.env = os.environ.copy()
        self._setup_environment()

    def _setup_environment(self):
        """Setup build environment variables"""
        # Let find_package() see previously provisioned prefixes
        prefix_path = self.env.get("CMAKE_PREFIX_PATH", "")
        paths = [p for p in prefix_path.split(os.pathsep) if p]
        if str(self.install_prefix) not in paths:
            paths.insert(0, str(self.install_prefix))
        self.env["CMAKE_PREFIX_PATH"] = os.pathsep.join(paths)

    def run_command(self,
                    cmd: List[str],
                    cwd: Optional[Path] = None,
                    env: Optional[Dict] = None,
                    check: bool = True,
                    capture_output: bool = False) -> subprocess.CompletedProcess:
        """
        Run a command with logging

        Args:
            cmd: Command and arguments
            cwd: Working directory (defaults to the build directory)
            env: Environment variables
            check: Raise exception on non-zero exit
            capture_output: Capture stdout/stderr

        Returns:
            CompletedProcess instance
        """
        if cwd is None:
            cwd = self.build_dir
        if env is None:
            env = self.env

        cmd_str = " ".join(str(c) for c in cmd)
        self.logger.debug(f"Running: {cmd_str}")
        self.logger.debug(f"  in: {cwd}")

        if self.dry_run:
            self.logger.info(f"[DRY RUN] Would run: {cmd_str}")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        try:
            result = subprocess.run(
                [str(c) for c in cmd],
                cwd=str(cwd),
                env=env,
                check=check,
                capture_output=capture_output,
                text=True
            )

            if capture_output and result.stdout:
                self.logger.debug(f"Output: {result.stdout}")

            return result

        except subprocess.CalledProcessError as e:
            self.logger.error(f"Command failed with exit status {e.returncode}: {cmd_str}")
            if e.stdout:
                self.logger.error(f"stdout: {e.stdout}")
            if e.stderr:
                self.logger.error(f"stderr: {e.stderr}")
            raise

    def run_step(self, cmd: List[str], cwd: Optional[Path] = None) -> bool:
        """Run a command, reporting failure as False instead of raising"""
        try:
            return self.run_command(cmd, cwd=cwd).returncode == 0
        except subprocess.CalledProcessError:
            return False
        except FileNotFoundError as e:
            self.logger.error(f"Command not found: {e.filename or cmd[0]}")
            return False

    def replace_variables(self, text: str) -> str:
        """Replace variables in configuration strings"""
        replacements = {
            "{source_dir}": str(self.source_dir),
            "{build_dir}": str(self.build_dir),
            "{install_prefix}": str(self.install_prefix),
            "{cpu_count}": str(os.cpu_count() or 1),
        }

        for key, value in replacements.items():
            text = text.replace(key, value)
        return text

    def ensure_build_dir(self) -> bool:
        """Create the build directory if absent (mkdir -p)"""
        if self.build_dir.exists() and not self.build_dir.is_dir():
            self.logger.error(f"Build path exists and is not a directory: {self.build_dir}")
            return False

        if self.dry_run:
            if not self.build_dir.exists():
                self.logger.info(f"[DRY RUN] Would create: {self.build_dir}")
            return True

        try:
            self.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error(f"Cannot create build directory {self.build_dir}: {e}")
            return False

        self.logger.debug(f"Build directory: {self.build_dir}")
        return True

    @abstractmethod
    def configure(self) -> bool:
        """Configure the build"""

    @abstractmethod
    def install(self) -> bool:
        """Build and install the target"""

    def clean(self, full: bool = False) -> bool:
        """
        Remove the build directory

        Args:
            full: Also remove the install prefix
        """
        self.logger.info(f"Cleaning {self.name}...")

        paths = [self.build_dir]
        if full:
            paths.append(self.install_prefix)

        for path in paths:
            if not path.exists():
                continue
            self.logger.debug(f"Removing {path}")
            if self.dry_run:
                self.logger.info(f"[DRY RUN] Would remove: {path}")
                continue
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
            except OSError as e:
                self.logger.error(f"Failed to remove {path}: {e}")
                return False

        return True

    def execute(self) -> bool:
        """Run the provisioning sequence, stopping at the first failing step"""
        self.logger.info(f"Provisioning {self.name}...")

        if not self.ensure_build_dir():
            return False

        self.logger.info(f"Configuring {self.name}...")
        if not self.configure():
            self.logger.error(f"Configuration failed for {self.name}")
            return False

        self.logger.info(f"Installing {self.name} to {self.install_prefix}...")
        if not self.install():
            self.logger.error(f"Installation failed for {self.name}")
            return False

        return True
