from pathlib import Path

import pytest

from moqt_provision.config import ConfigLoader, overrides_from_environment
from moqt_provision.exceptions import ConfigurationError


def test_bundled_defaults_match_vm_layout():
    config = ConfigLoader(overrides={"home": "/home/vagrant"})

    assert config.get_build_order() == ["moqt_core"]
    target = config.get_target("moqt_core")
    assert target.source_dir == Path("/vagrant/qt_ritual/test_assets/moqt/moqt_core")
    assert target.build_dir == Path("/home/vagrant/build_moqt/build_moqt_core")
    assert target.install_prefix == Path("/home/vagrant/moqt/moqt_core")
    assert target.build_system == "cmake"
    assert target.build_tool == "make"
    assert target.install_target == "install"
    assert target.jobs is None
    assert config.get_option("continue_on_error") is False


def test_home_defaults_to_user_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    config = ConfigLoader()

    assert config.get_target("moqt_core").install_prefix == tmp_path / "moqt" / "moqt_core"


def test_overrides_replace_configured_paths(write_targets, tmp_path):
    config = ConfigLoader(
        targets_file=write_targets(),
        overrides={
            "home": str(tmp_path),
            "source_dir": "/opt/src/moqt_core",
            "install_prefix": "{home}/prefix",
            "build_dir": None,
        },
    )

    target = config.get_target("moqt_core")
    assert target.source_dir == Path("/opt/src/moqt_core")
    assert target.install_prefix == tmp_path / "prefix"
    assert target.build_dir == tmp_path / "build_moqt" / "build_moqt_core"


def test_record_file_expands_home(write_targets, tmp_path):
    config = ConfigLoader(targets_file=write_targets(), overrides={"home": str(tmp_path)})

    assert config.get_record_file() == tmp_path / "build_moqt" / ".provision_record.json"


def test_build_order_defaults_to_declaration_order(write_targets, source_dir):
    targets = {
        "first": {"source_dir": str(source_dir), "build_dir": "/b1", "install_prefix": "/p1"},
        "second": {"source_dir": str(source_dir), "build_dir": "/b2", "install_prefix": "/p2"},
    }
    config = ConfigLoader(targets_file=write_targets(targets=targets))

    assert config.get_build_order() == ["first", "second"]


def test_missing_targets_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigLoader(targets_file=tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "targets.yaml"
    path.write_text("targets: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        ConfigLoader(targets_file=path)


def test_file_without_targets(tmp_path):
    path = tmp_path / "targets.yaml"
    path.write_text("build_options: {}\n")

    with pytest.raises(ConfigurationError, match="No targets"):
        ConfigLoader(targets_file=path)


def test_unknown_target(write_targets):
    config = ConfigLoader(targets_file=write_targets())

    assert not config.has_target("moqt_gui")
    with pytest.raises(ConfigurationError, match="Unknown target"):
        config.get_target("moqt_gui")


def test_unknown_target_in_build_order(write_targets):
    config = ConfigLoader(targets_file=write_targets(build_order=["moqt_core", "moqt_gui"]))

    with pytest.raises(ConfigurationError, match="moqt_gui"):
        config.get_build_order()


def test_target_without_install_prefix(write_targets, source_dir):
    targets = {"moqt_core": {"source_dir": str(source_dir), "build_dir": "/b"}}
    config = ConfigLoader(targets_file=write_targets(targets=targets))

    with pytest.raises(ConfigurationError, match="install_prefix"):
        config.get_target("moqt_core")


@pytest.mark.parametrize("jobs", [0, "many"])
def test_invalid_jobs(write_targets, source_dir, jobs):
    targets = {
        "moqt_core": {"source_dir": str(source_dir), "build_dir": "/b", "install_prefix": "/p", "jobs": jobs}
    }
    config = ConfigLoader(targets_file=write_targets(targets=targets))

    with pytest.raises(ConfigurationError, match="jobs"):
        config.get_target("moqt_core")


def test_unsupported_platform():
    config = ConfigLoader()

    assert "cmake" in config.get_platform_config("linux")["required_tools"]
    with pytest.raises(ConfigurationError, match="Unsupported platform"):
        config.get_platform_config("windows")


def test_overrides_from_environment():
    environ = {
        "MOQT_SOURCE_DIR": "/src",
        "MOQT_INSTALL_PREFIX": "",
        "PATH": "/usr/bin",
    }

    assert overrides_from_environment(environ) == {"source_dir": "/src"}


def test_empty_lists_are_empty(tmp_path, source_dir):
    path = tmp_path / "targets.yaml"
    path.write_text(
        "build_order:\n"
        "targets:\n"
        "  moqt_core:\n"
        f"    source_dir: {source_dir}\n"
        "    build_dir: /b\n"
        "    install_prefix: /p\n"
        "    cmake_args:\n"
        "    outputs:\n"
        "    dependencies:\n"
    )
    config = ConfigLoader(targets_file=path)

    target = config.get_target("moqt_core")
    assert target.cmake_args == []
    assert target.outputs == []
    assert target.dependencies == []
    assert config.get_build_order() == ["moqt_core"]


@pytest.mark.parametrize("key", ["cmake_args", "outputs", "dependencies"])
def test_list_value_of_wrong_type(write_targets, source_dir, key):
    targets = {
        "moqt_core": {"source_dir": str(source_dir), "build_dir": "/b", "install_prefix": "/p", key: "-DFOO=1"}
    }
    config = ConfigLoader(targets_file=write_targets(targets=targets))

    with pytest.raises(ConfigurationError, match=f"{key} of moqt_core must be a list"):
        config.get_target("moqt_core")


def test_build_order_of_wrong_type(write_targets):
    config = ConfigLoader(targets_file=write_targets(build_order="moqt_core"))

    with pytest.raises(ConfigurationError, match="build_order of targets file must be a list"):
        config.get_build_order()


def test_target_entry_not_a_mapping(write_targets):
    config = ConfigLoader(targets_file=write_targets(targets={"moqt_core": ["cmake"]}))

    with pytest.raises(ConfigurationError, match="moqt_core must be a mapping"):
        config.get_target("moqt_core")


def test_unknown_dependency(write_targets, source_dir):
    targets = {
        "moqt_core": {
            "source_dir": str(source_dir),
            "build_dir": "/b",
            "install_prefix": "/p",
            "dependencies": ["qt_base"],
        }
    }
    config = ConfigLoader(targets_file=write_targets(targets=targets))

    with pytest.raises(ConfigurationError, match="Unknown dependency of moqt_core: qt_base"):
        config.get_target("moqt_core")
