"""Tests for the pkg-config package locator."""

from pathlib import Path

import pytest

from orogen.errors import ConfigError, InternalError, OrogenError, PackageNotFoundError
from orogen.locator import PkgConfigLocator, PkgConfigParseError, parse_pc_text


PC_TEXT = """\
prefix=/opt/cam
includedir=${prefix}/include
deffile=${prefix}/share/orogen/cam.orogen.yaml
# comment line

Name: orogen-project-cam
Description: oroGen project cam
Version: 1.2
Requires: orocos-rtt-gnulinux >= 2.0, base-types
Cflags: -I${includedir} -I${includedir}/orocos
Libs: -L${prefix}/lib -lcam
"""


class TestParsePcText:
    def test_variables_are_expanded(self):
        pkg = parse_pc_text("orogen-project-cam", PC_TEXT)
        assert pkg.deffile == "/opt/cam/share/orogen/cam.orogen.yaml"
        assert pkg.variable("includedir") == "/opt/cam/include"

    def test_fields(self):
        pkg = parse_pc_text("orogen-project-cam", PC_TEXT)
        assert pkg.version == "1.2"
        assert pkg.requires == ["orocos-rtt-gnulinux", "base-types"]

    def test_flags(self):
        pkg = parse_pc_text("orogen-project-cam", PC_TEXT)
        assert pkg.include_dirs == ["/opt/cam/include", "/opt/cam/include/orocos"]
        assert pkg.library_dirs == ["/opt/cam/lib"]
        assert pkg.libraries == ["cam"]

    def test_undefined_variable(self):
        with pytest.raises(PkgConfigParseError):
            parse_pc_text("broken", "Cflags: -I${nowhere}\n")

    def test_pcfiledir_is_predefined(self):
        pkg = parse_pc_text("x", "dir=${pcfiledir}/data\n", path=Path("/lib/pkgconfig/x.pc"))
        assert pkg.variable("dir") == "/lib/pkgconfig/data"

    def test_deployment_and_typekit_variables(self):
        pkg = parse_pc_text("x", "project_name=cam\ntype_registry=/r.yaml\n")
        assert pkg.project_name == "cam"
        assert pkg.type_registry == "/r.yaml"


class TestPkgConfigLocator:
    def test_locate(self, locator, write_pc):
        write_pc("opencv", cflags="-I/usr/include/opencv4")
        pkg = locator.locate("opencv")
        assert pkg.name == "opencv"
        assert pkg.include_dirs == ["/usr/include/opencv4"]

    def test_not_found(self, locator):
        with pytest.raises(PackageNotFoundError) as exc_info:
            locator.locate("nothing")
        assert isinstance(exc_info.value, ConfigError)
        assert exc_info.value.package_name == "nothing"

    def test_has(self, locator, write_pc):
        write_pc("opencv")
        assert locator.has("opencv")
        assert not locator.has("eigen3")

    def test_search_order(self, tmp_path):
        first, second = tmp_path / "first", tmp_path / "second"
        for directory, version in ((first, "1"), (second, "2")):
            directory.mkdir()
            (directory / "lib.pc").write_text(f"Version: {version}\n")
        locator = PkgConfigLocator([first, second], use_environment=False)
        assert locator.locate("lib").version == "1"

    def test_environment_path(self, monkeypatch, pkg_dir, write_pc):
        write_pc("opencv")
        monkeypatch.setenv("PKG_CONFIG_PATH", str(pkg_dir))
        assert PkgConfigLocator().has("opencv")
        assert not PkgConfigLocator(use_environment=False).has("opencv")

    def test_undefined_variable_is_an_internal_error(self, locator, write_pc):
        write_pc("broken", {"libdir": "${undefined}/lib"})
        with pytest.raises(InternalError, match="undefined variable"):
            locator.locate("broken")


class TestBrokenDescriptions:
    def test_predicates_do_not_raise(self, project, write_pc):
        write_pc("orogen-project-broken", {"deffile": "${undefined}/x.orogen.yaml"})
        write_pc("broken-typekit-gnulinux", {"type_registry": "${undefined}/x.typekit.yaml"})
        assert not project.has_task_library("broken")
        assert not project.has_typekit("broken")

    def test_loading_reports_an_orogen_error(self, project, write_pc):
        write_pc("orogen-project-broken", {"deffile": "${undefined}/x.orogen.yaml"})
        with pytest.raises(OrogenError, match="undefined variable"):
            project.using_task_library("broken")
