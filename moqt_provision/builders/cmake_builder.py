"""
CMake builder implementation
"""

import shutil
from .base_builder import BaseBuilder


class CMakeBuilder(BaseBuilder):
    """Builder for CMake projects generating Makefiles"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.cmake = shutil.which("cmake")
        if not self.cmake:
            if not self.dry_run:
                raise FileNotFoundError("cmake not found in PATH")
            self.cmake = "cmake"

    def configure_command(self):
        cmd = [self.cmake, f"-DCMAKE_INSTALL_PREFIX={self.install_prefix}"]
        for arg in self.target.cmake_args:
            cmd.append(self.replace_variables(arg))
        cmd.append(str(self.source_dir))
        return cmd

    def install_command(self):
        cmd = [self.target.build_tool]
        if self.target.jobs:
            cmd.append(f"-j{self.target.jobs}")
        cmd.append(self.target.install_target)
        return cmd

    def configure(self) -> bool:
        """Configure using CMake from inside the build directory"""
        if not self.source_dir.is_dir():
            self.logger.error(f"Source directory not found: {self.source_dir}")
            return False

        return self.run_step(self.configure_command(), cwd=self.build_dir)

    def install(self) -> bool:
        """Build and install with the generated Makefiles"""
        return self.run_step(self.install_command(), cwd=self.build_dir)
