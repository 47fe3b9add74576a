"""Shared fixtures: a throwaway pkg-config tree and installed oroGen packages."""

from pathlib import Path

import pytest
import yaml

from orogen import GenerationConfig, Project
from orogen.locator import PkgConfigLocator


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep user config, PKG_CONFIG_PATH and OROCOS_TARGET out of the tests."""
    monkeypatch.setattr("orogen.config.CONFIG_FILE", tmp_path / "config" / "config.json")
    for var in (
        "OROCOS_TARGET",
        "PKG_CONFIG_PATH",
        "OROGEN_EXTENDED_STATES",
        "OROGEN_TRANSPORTS",
        "OROGEN_AUTOMATIC_AREA",
        "OROGEN_PKG_CONFIG_PATH",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def pkg_dir(tmp_path) -> Path:
    path = tmp_path / "pkgconfig"
    path.mkdir()
    return path


@pytest.fixture
def share_dir(tmp_path) -> Path:
    path = tmp_path / "share" / "orogen"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def write_pc(pkg_dir):
    """Write <name>.pc into the test pkg-config directory."""

    def _write(
        name: str,
        variables: dict[str, str] | None = None,
        cflags: str = "",
        libs: str = "",
    ) -> Path:
        lines = [f"{key}={value}" for key, value in (variables or {}).items()]
        lines += ["", f"Name: {name}", "Description: test package", "Version: 1.0"]
        if cflags:
            lines.append(f"Cflags: {cflags}")
        if libs:
            lines.append(f"Libs: {libs}")
        path = pkg_dir / f"{name}.pc"
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write


@pytest.fixture
def install_library(write_pc):
    def _install(name: str) -> Path:
        return write_pc(name, cflags=f"-I/opt/{name}/include", libs=f"-L/opt/{name}/lib -l{name}")

    return _install


@pytest.fixture
def install_project(share_dir, write_pc):
    """Install an oroGen project description, found as orogen-project-<name>."""

    def _install(name: str, declarations: list | None = None, **document) -> Path:
        path = share_dir / f"{name}.orogen.yaml"
        content = {"name": name, **document, "declarations": declarations or []}
        path.write_text(yaml.safe_dump(content, sort_keys=False))
        write_pc(
            f"orogen-project-{name}",
            {"prefix": "/opt/" + name, "deffile": str(path)},
            cflags="-I${prefix}/include/orocos",
        )
        return path

    return _install


@pytest.fixture
def install_typekit(share_dir, write_pc):
    """Install a typekit registry (and optionally its typelist) for target gnulinux."""

    def _install(name: str, types: list[dict], typelist: str | None = None) -> Path:
        path = share_dir / f"{name}.typekit.yaml"
        path.write_text(yaml.safe_dump({"types": types}, sort_keys=False))
        if typelist is not None:
            (share_dir / f"{name}.typelist").write_text(typelist)
        write_pc(
            f"{name}-typekit-gnulinux",
            {"type_registry": str(path)},
            cflags=f"-I/opt/{name}/include",
        )
        return path

    return _install


@pytest.fixture
def locator(pkg_dir) -> PkgConfigLocator:
    return PkgConfigLocator([pkg_dir], use_environment=False)


@pytest.fixture
def config(pkg_dir) -> GenerationConfig:
    return GenerationConfig(pkg_config_path=[str(pkg_dir)])


@pytest.fixture
def project(config, locator) -> Project:
    project = Project(config=config, locator=locator)
    project.name = "cam"
    return project


@pytest.fixture
def write_spec(tmp_path):
    """Write a specification file into its own project directory."""

    def _write(text: str, name: str = "cam") -> Path:
        directory = tmp_path / "src" / name
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.orogen.yaml"
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def time_type() -> dict:
    return {
        "name": "/base/Time",
        "kind": "compound",
        "fields": [{"name": "microseconds", "type": "/int64_t"}],
    }
