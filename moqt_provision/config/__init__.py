"""
Configuration management for the provisioning tool
"""

import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional, Mapping

from ..exceptions import ConfigurationError


DEFAULT_CONFIG_DIR = Path(__file__).parent

# Environment variable -> override key
ENV_OVERRIDES = {
    "MOQT_HOME": "home",
    "MOQT_SOURCE_DIR": "source_dir",
    "MOQT_BUILD_DIR": "build_dir",
    "MOQT_INSTALL_PREFIX": "install_prefix",
}

PATH_KEYS = ("source_dir", "build_dir", "install_prefix")


def overrides_from_environment(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Collect path overrides from environment variables

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Dictionary of override key -> value for every variable that is set
    """
    if environ is None:
        environ = os.environ
    return {key: environ[var] for var, key in ENV_OVERRIDES.items() if environ.get(var)}


@dataclass
class Target:
    """A CMake project to provision"""

    name: str
    source_dir: Path
    build_dir: Path
    install_prefix: Path
    build_system: str = "cmake"
    cmake_args: List[str] = field(default_factory=list)
    build_tool: str = "make"
    install_target: str = "install"
    jobs: Optional[int] = None
    outputs: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)


class ConfigLoader:
    """Loads and manages target configuration"""

    def __init__(self,
                 config_dir: Optional[Path] = None,
                 targets_file: Optional[Path] = None,
                 overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration loader

        Args:
            config_dir: Directory containing targets.yaml and platforms.yaml
            targets_file: Alternative targets file replacing targets.yaml
            overrides: Values replacing the YAML ones (home, source_dir,
                build_dir, install_prefix)
        """
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

        targets_path = Path(targets_file) if targets_file else self.config_dir / "targets.yaml"
        self.targets_config = self._load_yaml(targets_path)
        self.platforms_config = self._load_yaml(self.config_dir / "platforms.yaml")

        if not isinstance(self.targets_config.get("targets"), dict) or not self.targets_config["targets"]:
            raise ConfigurationError(f"No targets defined in {targets_path}")

        self.home = Path(os.path.expanduser(str(self.overrides.get("home", "~"))))

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping at the top of {path}")
        return data

    def expand_path(self, value: Any) -> Path:
        """Substitute {home} and expand ~ in a path string"""
        text = str(value).replace("{home}", str(self.home))
        return Path(os.path.expanduser(text))

    def get_targets(self) -> List[str]:
        """Get list of all targets"""
        return list(self.targets_config["targets"].keys())

    def has_target(self, name: str) -> bool:
        return name in self.targets_config["targets"]

    def get_target_config(self, name: str) -> Dict[str, Any]:
        """
        Get raw configuration for a specific target

        Args:
            name: Target name

        Returns:
            Target configuration dictionary
        """
        targets = self.targets_config["targets"]
        if name not in targets:
            raise ConfigurationError(f"Unknown target: {name}")
        if not isinstance(targets[name], dict):
            raise ConfigurationError(f"Target {name} must be a mapping, got {type(targets[name]).__name__}")
        return targets[name]

    @staticmethod
    def _get_list(section: Dict[str, Any], key: str, owner: str) -> List[Any]:
        """Read a list value, an empty YAML value counts as an empty list"""
        value = section.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise ConfigurationError(f"{key} of {owner} must be a list, got {type(value).__name__}")
        return value

    def get_target(self, name: str) -> Target:
        """
        Get a target with paths resolved and overrides applied

        Args:
            name: Target name

        Returns:
            Target instance
        """
        raw = dict(self.get_target_config(name))

        for key in PATH_KEYS:
            if key in self.overrides:
                raw[key] = self.overrides[key]
            if not raw.get(key):
                raise ConfigurationError(f"Target {name} has no {key}")

        jobs = raw.get("jobs")
        if jobs is not None:
            try:
                jobs = int(jobs)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid jobs value for {name}: {jobs!r}")
            if jobs < 1:
                raise ConfigurationError(f"Invalid jobs value for {name}: {jobs}")

        return Target(
            name=name,
            source_dir=self.expand_path(raw["source_dir"]),
            build_dir=self.expand_path(raw["build_dir"]),
            install_prefix=self.expand_path(raw["install_prefix"]),
            build_system=raw.get("build_system", "cmake"),
            cmake_args=[str(a) for a in self._get_list(raw, "cmake_args", name)],
            build_tool=raw.get("build_tool") or "make",
            install_target=raw.get("install_target") or "install",
            jobs=jobs,
            outputs=[str(o) for o in self._get_list(raw, "outputs", name)],
            dependencies=self.get_target_dependencies(name),
        )

    def get_build_order(self) -> List[str]:
        """Get provisioning order for targets"""
        order = self._get_list(self.targets_config, "build_order", "targets file") or self.get_targets()
        for name in order:
            if not isinstance(name, str) or not self.has_target(name):
                raise ConfigurationError(f"Unknown target in build_order: {name}")
        return list(order)

    def get_target_dependencies(self, name: str) -> List[str]:
        dependencies = self._get_list(self.get_target_config(name), "dependencies", name)
        for dep in dependencies:
            if not isinstance(dep, str) or not self.has_target(dep):
                raise ConfigurationError(f"Unknown dependency of {name}: {dep}")
        return list(dependencies)

    def get_option(self, key: str, default: Any = None) -> Any:
        """
        Get a build option

        Args:
            key: Option key
            default: Default value if not found

        Returns:
            Option value
        """
        options = self.targets_config.get("build_options") or {}
        return options.get(key, default)

    def get_record_file(self) -> Path:
        return self.expand_path(self.get_option("record_file", "{home}/build_moqt/.provision_record.json"))

    def get_platform_config(self, platform: str) -> Dict[str, Any]:
        """
        Get configuration for a specific platform

        Args:
            platform: Platform name (linux)

        Returns:
            Platform configuration dictionary
        """
        platforms = self.platforms_config.get("platforms", {})
        if platform not in platforms:
            raise ConfigurationError(f"Unsupported platform: {platform}")
        return platforms[platform]


__all__ = ["ConfigLoader", "Target", "overrides_from_environment", "ENV_OVERRIDES"]
