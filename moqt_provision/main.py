#!/usr/bin/env python3
"""
Main entry point for the moqt provisioning tool
"""

import argparse
import sys
import shutil
from pathlib import Path
from typing import Optional, List, Dict, Any

from .builders import ProvisionOrchestrator
from .config import ConfigLoader, overrides_from_environment
from .exceptions import ProvisionError, ConfigurationError
from .platform import PlatformDetector
from .utils import Logger, InstallRecord, Verifier


class ProvisionSystem:
    """Main provisioning class"""

    def __init__(self,
                 config_file: Optional[Path] = None,
                 overrides: Optional[Dict[str, Any]] = None,
                 verbose: bool = False,
                 dry_run: bool = False,
                 log_file: Optional[str] = None,
                 config_dir: Optional[Path] = None):
        """
        Initialize the provisioning system

        Args:
            config_file: Targets file replacing the bundled targets.yaml
            overrides: Path overrides (home, source_dir, build_dir, install_prefix)
            verbose: Enable verbose output
            dry_run: Log commands without running them
            log_file: Optional log file path
            config_dir: Directory holding targets.yaml and platforms.yaml
        """
        self.verbose = verbose
        self.dry_run = dry_run
        self.logger = Logger(verbose=verbose, log_file=log_file)

        self.platform_info = PlatformDetector().detect()
        self.platform = self.platform_info["platform"]
        self.logger.debug(f"Platform info: {self.platform_info}")

        self.config = ConfigLoader(config_dir=config_dir, targets_file=config_file, overrides=overrides)
        self.record = InstallRecord(self.config.get_record_file())
        self.orchestrator = ProvisionOrchestrator(
            config=self.config,
            record=self.record,
            logger=self.logger,
            dry_run=dry_run
        )
        self.verifier = Verifier(config=self.config, logger=self.logger)

    def resolve_targets(self, names: Optional[List[str]] = None) -> List[str]:
        """Validate requested target names, None means every target in build order"""
        if not names:
            return self.config.get_build_order()

        unknown = [n for n in names if not self.config.has_target(n)]
        if unknown:
            raise ConfigurationError(
                f"Unknown target: {', '.join(unknown)} "
                f"(available: {', '.join(self.config.get_targets())})"
            )
        return list(names)

    def check_prerequisites(self, names: Optional[List[str]] = None) -> bool:
        """
        Check that the configuration and build tools are installed

        Returns:
            True if all prerequisites are met
        """
        self.logger.info("Checking prerequisites...")

        try:
            platform_config = self.config.get_platform_config(self.platform)
        except ConfigurationError as e:
            self.logger.error(str(e))
            return False

        tools = list(platform_config.get("required_tools", ["cmake"]))
        for name in self.resolve_targets(names):
            build_tool = self.config.get_target(name).build_tool
            if build_tool not in tools:
                tools.append(build_tool)

        missing = [tool for tool in tools if not shutil.which(tool)]
        if not missing:
            return True

        self.logger.warning(f"Missing tools: {', '.join(missing)}")

        distro = self.platform_info.get("distribution", "unknown")
        distro_config = platform_config.get("distributions", {}).get(distro)
        if distro_config:
            package_map = distro_config.get("packages", {})
            packages = []
            for tool in missing:
                package = package_map.get(tool, tool)
                if package not in packages:
                    packages.append(package)
            install_cmd = distro_config.get("package_install_cmd", "")
            if install_cmd:
                self.logger.info(f"Install with: sudo {install_cmd} {' '.join(packages)}")

        if self.dry_run:
            self.logger.warning("Continuing dry run without the missing tools")
            return True
        return False

    def provision_target(self, name: str, skip_installed: bool = False) -> bool:
        """
        Provision a single target

        Args:
            name: Target name
            skip_installed: Skip a target whose recorded install still verifies

        Returns:
            True if provisioning succeeded
        """
        if skip_installed and self.record.is_installed(name):
            if self.verifier.verify_target(name):
                self.logger.info(f"Target {name} already installed, skipping")
                return True
            self.logger.warning(f"Recorded install of {name} is incomplete, provisioning again")

        if not self.orchestrator.provision(name):
            self.logger.error(f"Provisioning failed for {name}")
            return False

        if self.dry_run:
            return True

        if self.config.get_option("verify_after_install", True):
            if not self.verifier.verify_target(name):
                self.logger.warning(f"Verification failed for {name}")
                self.record.clear_target(name)
                return False

        self.logger.success(f"Successfully provisioned {name}")
        return True

    def provision(self, names: Optional[List[str]] = None, skip_installed: bool = False) -> bool:
        """
        Provision targets in order, stopping at the first failure unless
        continue_on_error is set

        Returns:
            True if every target was provisioned
        """
        targets = self.orchestrator.resolve_order(self.resolve_targets(names))

        if self.config.get_option("check_prerequisites", True):
            if not self.check_prerequisites(targets):
                self.logger.error("Prerequisites check failed")
                return False

        self.logger.info(f"Provisioning order: {' -> '.join(targets)}")

        success = True
        failed = set()
        for index, name in enumerate(targets, start=1):
            self.logger.info(f"[{index}/{len(targets)}] {name}")

            failed_deps = [d for d in self.config.get_target_dependencies(name) if d in failed]
            if failed_deps:
                self.logger.error(f"Skipping {name}: dependency {', '.join(failed_deps)} failed")
                ok = False
            else:
                ok = self.provision_target(name, skip_installed=skip_installed)

            if not ok:
                failed.add(name)
                success = False
                if not self.config.get_option("continue_on_error", False):
                    self.logger.error(f"Provisioning failed for {name}, stopping")
                    break
                self.logger.warning(f"Provisioning failed for {name}, continuing...")

        if success:
            self.logger.success("All targets provisioned successfully!")
        return success

    def clean(self, names: Optional[List[str]] = None, full: bool = False) -> bool:
        """
        Clean build directories

        Args:
            names: Targets to clean (None for all)
            full: Also remove install prefixes
        """
        success = True
        for name in self.resolve_targets(names):
            if not self.orchestrator.clean_target(name, full=full):
                success = False
            elif not self.dry_run:
                self.record.clear_target(name)
        return success

    def verify(self, names: Optional[List[str]] = None) -> bool:
        self.logger.info("Verifying installation...")
        success = True
        for name in self.resolve_targets(names):
            if not self.verifier.verify_target(name):
                success = False
        return success

    def show_info(self) -> None:
        """Show provisioning information"""
        from . import __version__

        self.logger.raw(f"\nmoqt provisioning tool v{__version__}")
        self.logger.raw("=" * 50)
        self.logger.raw(f"Platform: {self.platform} ({self.platform_info.get('arch')})")
        if "distribution" in self.platform_info:
            self.logger.raw(f"Distribution: {self.platform_info['distribution']}")
        self.logger.raw(f"Install record: {self.record.record_file}")
        self.logger.raw(f"\nTargets ({len(self.config.get_targets())}):")

        for name in self.config.get_build_order():
            info = self.orchestrator.get_target_info(name)
            status = "[OK] Installed" if info["installed"] else "[X] Not installed"
            self.logger.raw(f"  - {name:20} {status}")
            self.logger.raw(f"      source:  {info['source_dir']}")
            self.logger.raw(f"      build:   {info['build_dir']}")
            self.logger.raw(f"      prefix:  {info['install_prefix']}")
            if info["installed_at"]:
                self.logger.raw(f"      installed at: {info['installed_at']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moqt-provision",
        description="Configure, build and install the moqt test libraries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s provision                      # Provision every target
  %(prog)s provision --target moqt_core   # Provision one target
  %(prog)s clean --full                   # Remove build dirs and install prefixes
  %(prog)s verify                         # Check installed files
  %(prog)s info                           # Show configuration and status
        """
    )

    parser.add_argument(
        "command",
        choices=["provision", "clean", "verify", "info"],
        help="Command to execute"
    )
    parser.add_argument(
        "--target",
        action="append",
        help="Target to process (can be used multiple times, default: all)"
    )
    parser.add_argument(
        "--skip-installed",
        action="store_true",
        help="Skip targets whose recorded install still verifies"
    )
    parser.add_argument(
        "--full",
        action="store_true",
        help="Also remove install prefixes (use with clean command)"
    )
    parser.add_argument("--config", type=Path, help="Targets file replacing the bundled one")
    parser.add_argument("--home", help="Home directory used for {home} in paths")
    parser.add_argument("--source-dir", help="Source directory to configure")
    parser.add_argument("--build-dir", help="Build directory")
    parser.add_argument("--install-prefix", help="Install prefix passed to CMake")
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log commands without running them"
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Command-line interface"""
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = overrides_from_environment()
    for key in ("home", "source_dir", "build_dir", "install_prefix"):
        value = getattr(args, key)
        if value is not None:
            overrides[key] = value

    try:
        ps = ProvisionSystem(
            config_file=args.config,
            overrides=overrides,
            verbose=args.verbose,
            dry_run=args.dry_run,
            log_file=args.log_file
        )
    except (ProvisionError, OSError) as e:
        print(f"Error initializing provisioning: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.command == "provision":
            success = ps.provision(args.target, skip_installed=args.skip_installed)
        elif args.command == "clean":
            success = ps.clean(args.target, full=args.full)
        elif args.command == "verify":
            success = ps.verify(args.target)
        else:
            ps.show_info()
            success = True
    except KeyboardInterrupt:
        print("\nProvisioning interrupted by user", file=sys.stderr)
        sys.exit(130)
    except ProvisionError as e:
        ps.logger.error(str(e))
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
