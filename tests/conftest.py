import shutil
import subprocess
from pathlib import Path

import pytest
import yaml

from moqt_provision.config import Target, ENV_OVERRIDES
from moqt_provision.utils import Logger


class FakeRunner:
    """Stands in for subprocess.run, recording calls and faking an install."""

    def __init__(self):
        self.calls = []
        self.fail_on = {}
        self.prefix = None

    def fail(self, tool: str, returncode: int = 2):
        self.fail_on[tool] = returncode

    def tools(self):
        return [Path(cmd[0]).name for cmd, _ in self.calls]

    def __call__(self, cmd, cwd=None, env=None, check=True, capture_output=False, text=True, **kwargs):
        self.calls.append((list(cmd), cwd))
        tool = Path(cmd[0]).name

        if tool in self.fail_on:
            raise subprocess.CalledProcessError(self.fail_on[tool], cmd, output="", stderr=f"{tool} failed")

        if tool == "cmake":
            for arg in cmd:
                if arg.startswith("-DCMAKE_INSTALL_PREFIX="):
                    self.prefix = Path(arg.split("=", 1)[1])
        elif tool == "make" and self.prefix is not None:
            lib_dir = self.prefix / "lib"
            lib_dir.mkdir(parents=True, exist_ok=True)
            (lib_dir / "libmoqt_core.so").write_text("")

        return subprocess.CompletedProcess(cmd, 0, "", "")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for var in ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_run(monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner


@pytest.fixture
def tools_present(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda name: f"/usr/bin/{name}")


@pytest.fixture
def make_logger():
    """Loggers are built inside the test body so output lands in capsys."""
    return lambda: Logger(verbose=True)


@pytest.fixture
def home(tmp_path):
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def source_dir(tmp_path):
    path = tmp_path / "vagrant" / "moqt_core"
    path.mkdir(parents=True)
    (path / "CMakeLists.txt").write_text("project(moqt_core CXX)\n")
    return path


@pytest.fixture
def target(home, source_dir):
    return Target(
        name="moqt_core",
        source_dir=source_dir,
        build_dir=home / "build_moqt" / "build_moqt_core",
        install_prefix=home / "moqt" / "moqt_core",
    )


@pytest.fixture
def write_targets(tmp_path, source_dir):
    """Write a targets.yaml into tmp_path and return its path."""

    def _write(targets=None, options=None, build_order=None):
        if targets is None:
            targets = {
                "moqt_core": {
                    "build_system": "cmake",
                    "source_dir": str(source_dir),
                    "build_dir": "{home}/build_moqt/build_moqt_core",
                    "install_prefix": "{home}/moqt/moqt_core",
                }
            }
        build_options = {
            "check_prerequisites": False,
            "record_file": "{home}/build_moqt/.provision_record.json",
        }
        build_options.update(options or {})
        data = {"build_options": build_options, "targets": targets}
        if build_order is not None:
            data["build_order"] = build_order

        path = tmp_path / "targets.yaml"
        path.write_text(yaml.safe_dump(data))
        return path

    return _write
