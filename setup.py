"""
setup.py for the moqt provisioning tool

Runtime Requirements:
- CMake
- make (or the build tool configured per target)

Path Overrides:
- MOQT_HOME replaces the home directory used for {home} in target paths
- MOQT_SOURCE_DIR, MOQT_BUILD_DIR and MOQT_INSTALL_PREFIX replace the
  configured target paths
- Command-line flags take precedence over the environment
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read README for long description
readme_path = Path("README.md")
long_description = ""
if readme_path.exists():
    with open(readme_path, "r", encoding="utf-8") as f:
        long_description = f.read()

setup(
    name="moqt-provision",
    version="1.0.0",
    description="Configure, build and install the moqt test libraries with CMake",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["moqt_provision", "moqt_provision.*"]),
    package_data={
        "moqt_provision": [
            "config/*.yaml",
        ]
    },
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "moqt-provision=moqt_provision.main:main",
        ],
    },
    zip_safe=False,
    python_requires=">=3.10",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: POSIX :: Linux",
        "Topic :: Software Development :: Build Tools",
    ],
)
