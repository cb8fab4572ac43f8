"""
Builder components for the supported build systems
"""

from .base_builder import BaseBuilder
from .cmake_builder import CMakeBuilder
from .orchestrator import ProvisionOrchestrator

__all__ = [
    "BaseBuilder",
    "CMakeBuilder",
    "ProvisionOrchestrator"
]
