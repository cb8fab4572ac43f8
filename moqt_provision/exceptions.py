"""
Exceptions raised by the provisioning tool
"""


class ProvisionError(Exception):
    """Base class for provisioning errors"""


class ConfigurationError(ProvisionError):
    """Raised when the target configuration is missing or invalid"""


__all__ = ["ProvisionError", "ConfigurationError"]
