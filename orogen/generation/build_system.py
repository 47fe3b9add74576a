"""CMake build system generation stage."""

import logging

logger = logging.getLogger(__name__)

# Generated per project as config/<name><file>
CMAKE_GENERATED_CONFIG = ("Base.cmake", "TaskLib.cmake")


def generate_build_system(ctx) -> None:
    """Write the CMake configuration derived from the resolved model.

    The config/ files are automatic; the CMakeLists.txt files belong to the
    user once written.
    """
    project = ctx.project
    typekit = project.typekit()
    bindings = dict(
        project=project,
        target=ctx.target,
        typekit=typekit,
        dependencies=ctx.tasklib_dependencies(),
        typekit_dependencies=typekit.dependencies() if typekit else [],
        used_task_libraries=project.tasklib_used_task_libraries(),
    )
    for filename in CMAKE_GENERATED_CONFIG:
        cmake = ctx.renderer.render(f"config/{filename}", **bindings)
        ctx.emitter.save_automatic("config", f"{project.name}{filename}", cmake)

    if project.self_tasks:
        cmake = ctx.renderer.render("tasks/CMakeLists.txt", **bindings)
        ctx.emitter.save_user("tasks", "CMakeLists.txt", cmake)

    cmake = ctx.renderer.render("CMakeLists.txt", **bindings)
    ctx.emitter.save_user("CMakeLists.txt", cmake)
