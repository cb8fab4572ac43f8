"""
moqt provisioning tool
Configures, builds and installs the moqt test libraries with CMake
"""

__version__ = "1.0.0"

from .main import ProvisionSystem

__all__ = ["ProvisionSystem", "__version__"]
