"""Tests for the orogen command line."""

import json

from typer.testing import CliRunner

from orogen import config as config_module
from orogen.cli import app

runner = CliRunner()


SPEC = """\
name: cam
declarations:
  - using_library: opencv
  - task_context:
      name: Grabber
      output_ports:
        - {name: exposure, type: double}
"""


def _json(output: str) -> dict:
    return json.loads(output[output.index("{"):])


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "orogen" in result.output


class TestConfigCommand:
    def test_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "oroGen Configuration" in result.output
        assert "not created yet" in result.output

    def test_set_and_reset(self):
        result = runner.invoke(app, ["config", "set", "transports", "corba, mqueue"])
        assert result.exit_code == 0
        saved = json.loads(config_module.CONFIG_FILE.read_text())
        assert saved["transports"] == ["corba", "mqueue"]

        result = runner.invoke(app, ["config", "reset"])
        assert result.exit_code == 0
        assert "Config reset to defaults" in result.output
        assert not config_module.CONFIG_FILE.exists()

    def test_reset_without_file(self):
        result = runner.invoke(app, ["config", "reset"])
        assert "Config already at defaults" in result.output

    def test_set_boolean(self):
        result = runner.invoke(app, ["config", "set", "extended_states", "yes"])
        assert result.exit_code == 0
        assert json.loads(config_module.CONFIG_FILE.read_text())["extended_states"] is True

    def test_invalid_key(self):
        result = runner.invoke(app, ["config", "set", "colour", "blue"])
        assert result.exit_code == 1
        assert "Unknown key" in result.output

    def test_invalid_boolean(self):
        result = runner.invoke(app, ["config", "set", "extended_states", "maybe"])
        assert result.exit_code == 1
        assert "Invalid boolean value" in result.output

    def test_unknown_action(self):
        result = runner.invoke(app, ["config", "frobnicate"])
        assert result.exit_code == 1
        assert "Unknown action" in result.output


class TestValidateCommand:
    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nothing.orogen.yaml")])
        assert result.exit_code == 3

    def test_valid(self, write_spec, pkg_dir, install_library):
        install_library("opencv")
        result = runner.invoke(app, ["validate", str(write_spec(SPEC)), "-P", str(pkg_dir)])
        assert result.exit_code == 0, result.output
        assert "cam is valid" in result.output

    def test_invalid_name(self, write_spec, pkg_dir, install_library):
        install_library("opencv")
        spec = write_spec(SPEC.replace("name: cam", "name: Cam"))
        result = runner.invoke(app, ["--json", "validate", str(spec), "-P", str(pkg_dir)])
        assert result.exit_code == 1
        data = _json(result.output)
        assert data["valid"] is False
        assert data["errors"][0]["location"] == "project"

    def test_missing_library(self, write_spec, pkg_dir):
        result = runner.invoke(app, ["validate", str(write_spec(SPEC)), "-P", str(pkg_dir)])
        assert result.exit_code == 4


class TestGenerateCommand:
    def test_json_output(self, write_spec, pkg_dir, install_library):
        install_library("opencv")
        spec = write_spec(SPEC)
        result = runner.invoke(app, ["--json", "generate", str(spec), "-P", str(pkg_dir)])
        assert result.exit_code == 0, result.output
        data = _json(result.output)
        assert data["status"] == "success"
        assert data["package_ids"] == ["orogen-project-cam", "cam-tasks-gnulinux"]
        assert [row["Package"] for row in data["packages"]] == data["package_ids"]
        assert (spec.parent / ".orogen" / "tasks" / "GrabberBase.hpp").is_file()

    def test_target_option(self, write_spec, pkg_dir, install_library):
        install_library("opencv")
        spec = write_spec(SPEC)
        result = runner.invoke(
            app, ["--json", "generate", str(spec), "-P", str(pkg_dir), "--target", "xenomai"]
        )
        assert result.exit_code == 0, result.output
        assert _json(result.output)["package_ids"][1] == "cam-tasks-xenomai"

    def test_output_directory(self, write_spec, pkg_dir, install_library, tmp_path):
        install_library("opencv")
        out_dir = tmp_path / "build"
        result = runner.invoke(
            app,
            ["generate", str(write_spec(SPEC)), "-P", str(pkg_dir), "--output", str(out_dir)],
        )
        assert result.exit_code == 0, result.output
        assert (out_dir / ".orogen" / "tasks" / "GrabberBase.hpp").is_file()

    def test_configuration_error(self, write_spec, pkg_dir):
        result = runner.invoke(app, ["--json", "generate", str(write_spec(SPEC)), "-P", str(pkg_dir)])
        assert result.exit_code == 4
        data = _json(result.output)
        assert data["errors"][0]["category"] == "configuration"
        assert "opencv" in data["errors"][0]["message"]

    def test_invalid_inline_type(self, write_spec, pkg_dir):
        spec = write_spec(
            "name: cam\n"
            "declarations:\n"
            "  - import_types_from:\n"
            "      name: cam/Types.hpp\n"
            "      types:\n"
            "        - {name: /cam/Mode, kind: bogus}\n"
        )
        result = runner.invoke(app, ["--json", "generate", str(spec), "-P", str(pkg_dir)])
        assert result.exit_code == 1
        data = _json(result.output)
        assert data["errors"][0]["category"] == "specification"
        assert "/cam/Mode" in data["errors"][0]["message"]

    def test_broken_package_description(self, write_spec, write_pc, pkg_dir):
        write_pc("orogen-project-broken", {"deffile": "${undefined}/x.orogen.yaml"})
        spec = write_spec("name: cam\ndeclarations:\n  - using_task_library: broken\n")
        result = runner.invoke(app, ["--json", "generate", str(spec), "-P", str(pkg_dir)])
        assert result.exit_code == 5
        assert _json(result.output)["errors"][0]["category"] == "internal"


class TestInspectCommand:
    def test_json(self, write_spec, pkg_dir, install_library):
        install_library("opencv")
        result = runner.invoke(app, ["--json", "inspect", str(write_spec(SPEC)), "-P", str(pkg_dir)])
        assert result.exit_code == 0, result.output
        data = _json(result.output)
        assert data["project"]["tasks"] == ["cam::Grabber"]
        assert data["project"]["used_libraries"] == ["opencv"]
        assert [row["Variable"] for row in data["build_dependencies"]] == ["opencv"]

    def test_human(self, write_spec, pkg_dir, install_library):
        install_library("opencv")
        result = runner.invoke(app, ["inspect", str(write_spec(SPEC)), "-P", str(pkg_dir)])
        assert result.exit_code == 0
        assert "cam::Grabber" in result.output
