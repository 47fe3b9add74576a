"""Tests for resolving installed projects, typekits and libraries."""

from unittest.mock import Mock

import pytest

from orogen import Project
from orogen.errors import (
    CircularImportError,
    ConfigError,
    InternalError,
    TypeConflictError,
)


def located_names(mock_locator) -> list[str]:
    return [call.args[0] for call in mock_locator.locate.call_args_list]


@pytest.fixture
def camera_base(install_project):
    return install_project(
        "camera_base",
        [
            {
                "task_context": {
                    "name": "Driver",
                    "output_ports": [{"name": "exposure", "type": "/double"}],
                }
            }
        ],
    )


class TestTaskLibraries:
    def test_tasks_become_available(self, project, camera_base):
        tasklib = project.using_task_library("camera_base")
        assert tasklib.kind == "imported"
        assert [t.name for t in tasklib.self_tasks] == ["camera_base::Driver"]
        assert "camera_base::Driver" in project.tasks
        assert project.used_task_libraries == [tasklib]
        assert project.has_task_context("camera_base::Driver")

    def test_using_twice_is_idempotent(self, project, camera_base):
        first = project.using_task_library("camera_base")
        second = project.using_task_library("camera_base")
        assert first is second
        assert len(project.used_task_libraries) == 1

    def test_falls_back_to_tasks_package(self, project, share_dir, write_pc):
        path = share_dir / "legacy.orogen.yaml"
        path.write_text("name: legacy\ndeclarations:\n  - task_context: Worker\n")
        write_pc("legacy-tasks-gnulinux", {"deffile": str(path)})
        tasklib = project.using_task_library("legacy")
        assert [t.name for t in tasklib.self_tasks] == ["legacy::Worker"]

    def test_missing_task_library_leaves_project_unchanged(self, project):
        tasks_before = set(project.tasks)
        with pytest.raises(ConfigError, match="no task library named 'nothing'"):
            project.using_task_library("nothing")
        assert set(project.tasks) == tasks_before
        assert project.used_task_libraries == []

    def test_project_without_tasks_is_not_a_task_library(self, project, install_project):
        install_project("types_only")
        with pytest.raises(ConfigError, match="defines no task library"):
            project.using_task_library("types_only")

    def test_missing_description_gives_empty_project(self, project, write_pc):
        write_pc("orogen-project-ghost", {"deffile": "/nonexistent/ghost.orogen.yaml"})
        ghost = project.load_orogen_project("ghost")
        assert ghost.name == "ghost"
        assert ghost.self_tasks == []

    def test_task_library_typekit_is_imported(self, project, install_project, install_typekit, time_type):
        install_typekit("stamped", [{**time_type, "name": "/stamped/Time"}])
        install_project(
            "stamped",
            [
                {"import_types_from": "stamped/Time.hpp"},
                {
                    "task_context": {
                        "name": "Clock",
                        "output_ports": [{"name": "time", "type": "stamped::Time"}],
                    }
                },
            ],
        )
        project.using_task_library("stamped")
        assert [tk.name for tk in project.used_typekits] == ["rtt", "stamped"]
        assert project.is_imported_type("/stamped/Time")


class TestMemoization:
    def test_project_description_is_located_once(self, pkg_dir, config, locator, camera_base):
        spy = Mock(wraps=locator)
        project = Project(config=config, locator=spy)
        project.name = "cam"
        project.using_task_library("camera_base")
        project.has_task_library("camera_base")
        project.load_orogen_project("camera_base")
        assert located_names(spy).count("orogen-project-camera_base") == 1

    def test_typekit_misses_are_remembered(self, config, locator):
        spy = Mock(wraps=locator)
        project = Project(config=config, locator=spy)
        assert not project.has_typekit("nothing")
        assert not project.has_typekit("nothing")
        assert located_names(spy).count("nothing-typekit-gnulinux") == 1

    def test_typekit_is_located_once(self, config, locator, install_typekit, time_type):
        install_typekit("base", [time_type])
        spy = Mock(wraps=locator)
        project = Project(config=config, locator=spy)
        first = project.using_typekit("base")
        second = project.using_typekit("base")
        assert first is second
        assert located_names(spy).count("base-typekit-gnulinux") == 1

    def test_typekit_shared_by_two_task_libraries(self, config, locator, install_project, install_typekit, time_type):
        install_typekit("base", [time_type])
        install_project("b", [{"using_typekit": "base"}, {"task_context": "Left"}])
        install_project("c", [{"using_typekit": "base"}, {"task_context": "Right"}])
        spy = Mock(wraps=locator)
        project = Project(config=config, locator=spy)
        project.name = "top"

        b = project.using_task_library("b")
        c = project.using_task_library("c")

        assert located_names(spy).count("base-typekit-gnulinux") == 1
        assert [tk.name for tk in project.used_typekits].count("base") == 1
        assert project.registry.names().count("/base/Time") == 1
        assert b.used_typekits[-1] is c.used_typekits[-1]

    def test_diamond_resolves_shared_dependency_once(self, config, locator, install_project):
        install_project("d", [{"task_context": "Base"}])
        install_project("b", [{"using_task_library": "d"}, {"task_context": "Left"}])
        install_project("c", [{"using_task_library": "d"}, {"task_context": "Right"}])
        spy = Mock(wraps=locator)
        project = Project(config=config, locator=spy)
        project.name = "top"

        b = project.using_task_library("b")
        c = project.using_task_library("c")

        assert located_names(spy).count("orogen-project-d") == 1
        assert b.used_task_libraries[0] is c.used_task_libraries[0]
        assert project.transitive_dependencies() == ["b", "c", "d"]


class TestCycles:
    def test_circular_import_is_reported(self, project, install_project):
        install_project("x", [{"using_task_library": "y"}, {"task_context": "X"}])
        install_project("y", [{"using_task_library": "x"}, {"task_context": "Y"}])

        with pytest.raises(CircularImportError) as exc_info:
            project.using_task_library("x")

        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert {"x", "y"} <= set(cycle)
        assert isinstance(exc_info.value, ConfigError)
        assert project.used_task_libraries == []
        assert "x" not in project.loaded_orogen_projects

    def test_resolution_can_continue_after_a_cycle(self, project, install_project, camera_base):
        install_project("x", [{"using_task_library": "x"}])
        with pytest.raises(CircularImportError):
            project.using_task_library("x")
        assert project.using_task_library("camera_base").name == "camera_base"


class TestTypekits:
    def test_using_typekit_merges_types(self, project, install_typekit, time_type):
        install_typekit("base", [time_type])
        typekit = project.using_typekit("base")
        assert not typekit.virtual
        assert "/base/Time" in project.registry
        assert project.imported_typekit_for("base::Time") is typekit

    def test_conflicting_typekit_leaves_registry_unchanged(self, project, install_typekit, time_type):
        install_typekit("base", [time_type])
        install_typekit(
            "other",
            [{"name": "/base/Time", "kind": "numeric", "size": 8}, {"name": "/other/T", "kind": "numeric", "size": 1}],
        )
        project.using_typekit("base")
        names_before = project.registry.names()
        with pytest.raises(TypeConflictError):
            project.using_typekit("other")
        assert project.registry.names() == names_before
        assert [tk.name for tk in project.used_typekits] == ["rtt", "base"]

    def test_missing_typekit(self, project):
        with pytest.raises(ConfigError, match="no typekit named 'nothing'"):
            project.using_typekit("nothing")

    def test_typekit_package_without_registry(self, project, write_pc):
        write_pc("broken-typekit-gnulinux")
        with pytest.raises(InternalError, match="type_registry"):
            project.using_typekit("broken")

    def test_typelist_controls_export(self, project, install_typekit, time_type):
        install_typekit("base", [time_type], typelist="/base/Time 0\n")
        typekit = project.using_typekit("base")
        assert typekit.includes("/base/Time")
        assert not typekit.interface_type("/base/Time")

    def test_import_types_from_typekit(self, project, install_typekit, time_type):
        install_typekit("base", [time_type])
        project.import_types_from("base")
        assert project.typekit() is None
        assert "/base/Time" in project.registry

    def test_typekit_lookup_uses_target(self, config, locator, install_typekit, time_type, monkeypatch):
        install_typekit("base", [time_type])
        monkeypatch.setenv("OROCOS_TARGET", "xenomai")
        project = Project(config=config, locator=locator)
        assert not project.has_typekit("base")


class TestLibraries:
    def test_using_library(self, project, install_library):
        install_library("opencv")
        project.using_library("opencv")
        assert [p.name for p in project.used_libraries] == ["opencv"]
        assert project.has_library("opencv")

    def test_using_library_twice(self, project, install_library):
        install_library("opencv")
        project.using_library("opencv").using_library("opencv")
        assert len(project.used_libraries) == 1

    def test_missing_library(self, project):
        with pytest.raises(ConfigError, match="no library named 'opencv'"):
            project.using_library("opencv")
        assert project.used_libraries == []


class TestDeployments:
    def test_load_installed_deployment(self, project, install_project, write_pc, camera_base):
        install_project(
            "cam_deploy",
            [
                {"using_task_library": "camera_base"},
                {"deployment": {"name": "camera", "tasks": [{"name": "driver", "model": "camera_base::Driver"}]}},
            ],
        )
        write_pc("orogen-camera", {"project_name": "cam_deploy"})
        deployment = project.load_orogen_deployment("camera")
        assert deployment.name == "camera"
        assert deployment.find_task("driver").model.name == "camera_base::Driver"

    def test_missing_deployment(self, project):
        with pytest.raises(ConfigError, match="no deployment called 'nothing'"):
            project.load_orogen_deployment("nothing")

    def test_deployment_not_declared_by_its_project(self, project, install_project, write_pc):
        install_project("empty")
        write_pc("orogen-lost", {"project_name": "empty"})
        with pytest.raises(InternalError, match="Candidates were none"):
            project.load_orogen_deployment("lost")
