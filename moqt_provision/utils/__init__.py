"""
Utility modules for the provisioning tool
"""

import sys
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, List


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for terminal output"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'SUCCESS': '\033[92m',  # Bright Green
        'RESET': '\033[0m'
    }

    def format(self, record):
        if getattr(record, 'raw', False):
            return record.getMessage()

        if sys.stdout.isatty():
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            reset = self.COLORS['RESET']

            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{reset}"
            record.msg = f"{color}{record.msg}{reset}"

        return super().format(record)


class Logger:
    """Provisioning logger"""

    SUCCESS = 25  # Between INFO and WARNING

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None):
        """
        Initialize logger

        Args:
            verbose: Enable debug output
            log_file: Optional log file path
        """
        self.verbose = verbose

        logging.addLevelName(self.SUCCESS, "SUCCESS")

        self.logger = logging.getLogger("moqt_provision")
        self.logger.setLevel(logging.DEBUG if verbose or log_file else logging.INFO)
        self.logger.propagate = False

        # Re-initialization replaces the handlers of a previous instance
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

        if verbose:
            fmt = "%(asctime)s [%(levelname)s] %(message)s"
        else:
            fmt = "[%(levelname)s] %(message)s"

        console_handler.setFormatter(ColoredFormatter(fmt, datefmt="%H:%M:%S"))
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
            self.logger.addHandler(file_handler)

    def debug(self, msg: str):
        self.logger.debug(msg)

    def info(self, msg: str):
        self.logger.info(msg)

    def warning(self, msg: str):
        self.logger.warning(msg)

    def error(self, msg: str):
        self.logger.error(msg)

    def success(self, msg: str):
        """Log success message"""
        self.logger.log(self.SUCCESS, msg)

    def raw(self, msg: str):
        """Log raw message without formatting"""
        record = self.logger.makeRecord(
            self.logger.name, logging.INFO, "", 0, msg, (), None
        )
        record.raw = True
        self.logger.handle(record)


class InstallRecord:
    """Persistent record of completed installs"""

    def __init__(self, record_file: Path):
        """
        Initialize install record

        Args:
            record_file: JSON file holding the record
        """
        self.record_file = Path(record_file)
        self.data = self._load()

    def _load(self) -> Dict[str, Any]:
        """Load record from file, an unreadable file counts as empty"""
        if self.record_file.exists():
            try:
                with open(self.record_file, 'r') as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
            except (OSError, ValueError):
                pass
        return {}

    def _save(self):
        self.record_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.record_file, 'w') as f:
            json.dump(self.data, f, indent=2)

    def is_installed(self, name: str) -> bool:
        """
        Check if a target has a recorded install

        Args:
            name: Target name

        Returns:
            True if the target was installed successfully before
        """
        return (self.get_info(name) or {}).get("installed", False)

    def mark_installed(self, name: str, install_prefix: Path):
        """
        Record a successful install

        Args:
            name: Target name
            install_prefix: Prefix the target was installed to
        """
        self.data[name] = {
            "installed": True,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
            "install_prefix": str(install_prefix)
        }
        self._save()

    def clear_target(self, name: str):
        if self.data.pop(name, None) is not None:
            self._save()

    def get_info(self, name: str) -> Optional[Dict[str, Any]]:
        entry = self.data.get(name)
        return entry if isinstance(entry, dict) else None


class Verifier:
    """Install verification utilities"""

    def __init__(self, config: Any, logger: Logger):
        """
        Initialize verifier

        Args:
            config: Configuration loader
            logger: Logger instance
        """
        self.config = config
        self.logger = logger

    def get_missing_files(self, name: str) -> List[str]:
        """
        Get list of expected outputs missing under a target's install prefix

        Args:
            name: Target name

        Returns:
            List of missing entries, relative to the install prefix
        """
        target = self.config.get_target(name)
        prefix = target.install_prefix

        if not prefix.is_dir():
            return [str(prefix)]

        missing = []
        for output in target.outputs:
            if any(c in output for c in "*?["):
                if not list(prefix.glob(output)):
                    missing.append(output)
            elif not (prefix / output).exists():
                missing.append(output)
        return missing

    def verify_target(self, name: str) -> bool:
        """
        Verify a target is properly installed

        Args:
            name: Target name

        Returns:
            True if verification passes
        """
        self.logger.debug(f"Verifying {name}...")

        missing = self.get_missing_files(name)
        if missing:
            for entry in missing:
                self.logger.error(f"  Not found: {entry}")
            return False

        self.logger.success(f"Verification passed for {name}")
        return True


__all__ = ["Logger", "InstallRecord", "Verifier"]
