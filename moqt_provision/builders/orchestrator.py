"""
Orchestrator that picks a builder per target and provisions targets in order
"""

from typing import Dict, Any, List

from .base_builder import BaseBuilder
from .cmake_builder import CMakeBuilder
from ..exceptions import ConfigurationError


class ProvisionOrchestrator:
    """Orchestrates provisioning of configured targets"""

    BUILDER_MAP = {
        "cmake": CMakeBuilder,
    }

    def __init__(self,
                 config: Any,
                 record: Any,
                 logger: Any,
                 dry_run: bool = False):
        """
        Initialize orchestrator

        Args:
            config: Configuration loader
            record: Install record
            logger: Logger instance
            dry_run: If True, don't actually build
        """
        self.config = config
        self.record = record
        self.logger = logger
        self.dry_run = dry_run

    def get_builder(self, name: str) -> BaseBuilder:
        """
        Get appropriate builder for a target

        Args:
            name: Target name

        Returns:
            Builder instance
        """
        target = self.config.get_target(name)

        builder_class = self.BUILDER_MAP.get(target.build_system)
        if not builder_class:
            raise ConfigurationError(f"Unknown build system for {name}: {target.build_system}")

        return builder_class(target=target, logger=self.logger, dry_run=self.dry_run)

    def resolve_order(self, names: List[str]) -> List[str]:
        """
        Expand targets with their dependencies, dependencies first

        A dependency that was not requested is only added when it has no
        recorded install. Each target appears once.

        Args:
            names: Requested targets, in order

        Returns:
            Provisioning order
        """
        requested = set(names)
        order: List[str] = []

        def visit(name: str, stack: List[str]):
            if name in stack:
                raise ConfigurationError(f"Dependency cycle: {' -> '.join(stack + [name])}")
            if name in order:
                return
            for dep in self.config.get_target_dependencies(name):
                if dep in requested or not self.record.is_installed(dep):
                    if dep not in requested and dep not in order:
                        self.logger.info(f"{name} depends on {dep}, which is not installed")
                    visit(dep, stack + [name])
            order.append(name)

        for name in names:
            visit(name, [])
        return order

    def provision(self, name: str) -> bool:
        """
        Run the provisioning sequence for one target and record the install

        Args:
            name: Target name

        Returns:
            True if every step succeeded
        """
        try:
            builder = self.get_builder(name)
        except (ConfigurationError, FileNotFoundError) as e:
            self.logger.error(f"Failed to provision {name}: {e}")
            return False

        if not builder.execute():
            return False

        if not self.dry_run:
            self.record.mark_installed(name, builder.install_prefix)
        return True

    def clean_target(self, name: str, full: bool = False) -> bool:
        try:
            builder = self.get_builder(name)
        except (ConfigurationError, FileNotFoundError) as e:
            self.logger.error(f"Failed to clean {name}: {e}")
            return False
        return builder.clean(full=full)

    def get_target_info(self, name: str) -> Dict[str, Any]:
        """
        Get provisioning information for a target

        Args:
            name: Target name

        Returns:
            Dictionary with target information
        """
        target = self.config.get_target(name)
        record = self.record.get_info(name) or {}
        return {
            "name": name,
            "build_system": target.build_system,
            "source_dir": str(target.source_dir),
            "build_dir": str(target.build_dir),
            "install_prefix": str(target.install_prefix),
            "dependencies": target.dependencies,
            "installed": self.record.is_installed(name),
            "installed_at": record.get("timestamp"),
        }
