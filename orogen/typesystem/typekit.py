"""Typekits: the units exporting types into the runtime type system.

Two kinds:
- ImportedTypekit: an installed typekit, read from its registry file and
  typelist. Answers "do you define / export this type?".
- Typekit: the typekit owned by the project being generated. Collects types
  from loaded headers and imported typekits, decides which ones are exported
  and generates the typekit sources.

Typelist format, one type per line: "<typename> <exported>" where exported is
1 when the type is registered in the runtime's interface type system.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Literal, Protocol

import yaml

from ..core.models import BuildDependency, core_dependency
from ..errors import ConfigError, SpecificationError
from ..locator import PackageInfo
from .registry import TypeDefinition, TypeRegistry, normalize_typename

if TYPE_CHECKING:
    from ..generation.pipeline import GenerationContext

logger = logging.getLogger(__name__)

ExportPolicy = Literal["all", "used", "selected"]
EXPORT_POLICIES: tuple[str, ...] = ("all", "used", "selected")

BASE_TYPEKIT_NAME = "rtt"


# =============================================================================
# Typelist parsing
# =============================================================================


def parse_typelist(text: str) -> dict[str, bool]:
    """Parse typelist text into {typename: exported}."""
    result: dict[str, bool] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.rsplit(None, 1)
        if len(parts) == 2 and parts[1] in ("0", "1"):
            result[normalize_typename(parts[0])] = parts[1] == "1"
        else:
            result[normalize_typename(line)] = True
    return result


def format_typelist(entries: dict[str, bool]) -> str:
    return "".join(
        f"{name} {1 if exported else 0}\n" for name, exported in sorted(entries.items())
    )


# =============================================================================
# Imported typekits
# =============================================================================


class ImportedTypekit:
    """An installed typekit.

    virtual typekits contribute types without a link-time library (the
    runtime's own types, header-only typekits).
    """

    def __init__(
        self,
        name: str,
        pkg: PackageInfo | None,
        registry: TypeRegistry,
        typelist: dict[str, bool],
        virtual: bool = False,
    ):
        self.name = name
        self.pkg = pkg
        self.registry = registry
        self.typelist = typelist
        self.virtual = virtual
        self.opaques: list[TypeDefinition] = [t for t in registry if t.is_opaque]
        self.opaque_registry = TypeRegistry(self.opaques)

    @classmethod
    def from_raw_data(
        cls,
        name: str,
        pkg: PackageInfo | None,
        registry_text: str,
        typelist_text: str,
        virtual: bool = False,
    ) -> "ImportedTypekit":
        try:
            registry = TypeRegistry.from_yaml_text(registry_text)
        except (ValueError, TypeError, yaml.YAMLError) as exc:
            raise ConfigError(f"invalid type registry for typekit '{name}': {exc}") from exc
        typelist = parse_typelist(typelist_text)
        if not typelist:
            typelist = {t.name: True for t in registry}
        return cls(name, pkg, registry, typelist, virtual=virtual)

    @property
    def include_dirs(self) -> list[str]:
        return self.pkg.include_dirs if self.pkg else []

    def includes(self, typename: str) -> bool:
        """True if this typekit defines typename."""
        return normalize_typename(typename) in self.typelist

    def interface_type(self, typename: str) -> bool:
        """True if typename is registered by this typekit in the interface type system."""
        return self.typelist.get(normalize_typename(typename), False)

    def __repr__(self) -> str:
        return f"<ImportedTypekit {self.name}>"


@lru_cache(maxsize=None)
def load_base_typekit() -> ImportedTypekit:
    """The runtime's own typekit, shipped with oroGen. Always virtual."""
    data = resources.files("orogen") / "data"
    registry_text = (data / "rtt.typekit.yaml").read_text()
    typelist_text = (data / "rtt.typelist").read_text()
    return ImportedTypekit.from_raw_data(
        BASE_TYPEKIT_NAME, None, registry_text, typelist_text, virtual=True
    )


# =============================================================================
# Header import
# =============================================================================


class HeaderImporter(Protocol):
    """Extracts type definitions from a native header."""

    def import_header(self, path: str, include_dirs: Iterable[str]) -> TypeRegistry: ...


class NullHeaderImporter:
    """Importer used when no introspection backend is configured.

    The header is still included by the generated typekit; only types given
    explicitly to Typekit.load() become known to the model.
    """

    def import_header(self, path: str, include_dirs: Iterable[str]) -> TypeRegistry:
        logger.debug("No header importer configured, %s contributes no types", path)
        return TypeRegistry()


# =============================================================================
# Owned typekit
# =============================================================================


class Typekit:
    """The typekit generated for a project."""

    def __init__(self, project, name: str | None = None, version: str = "0.0"):
        self.project = project
        self.name = name
        self.version = version
        self.base_dir: Path | None = None
        self.registry = TypeRegistry()
        self.imported_types = TypeRegistry()
        self.used_typekits: list[ImportedTypekit] = []
        self.used_libraries: list[tuple[PackageInfo, bool]] = []
        self.include_dirs: set[str] = set()
        self.plugins: set[str] = set()
        self.export_policy: ExportPolicy = "used"
        self.selected_types: set[str] = set()
        self.loads: dict[str, TypeRegistry] = {}
        self.pending_loads: list[tuple[str, TypeRegistry | None]] = []

    def __repr__(self) -> str:
        return f"<Typekit {self.name}>"

    # -- configuration --------------------------------------------------------

    def using_typekit(self, typekit: ImportedTypekit) -> None:
        if any(tk.name == typekit.name for tk in self.used_typekits):
            return
        self.imported_types = self.imported_types.merged(typekit.registry)
        self.used_typekits.append(typekit)
        self.include_dirs.update(typekit.include_dirs)

    def using_library(self, pkg: PackageInfo, link: bool = True) -> None:
        if any(existing.name == pkg.name for existing, _ in self.used_libraries):
            return
        self.used_libraries.append((pkg, link))
        self.include_dirs.update(pkg.include_dirs)

    def enable_plugin(self, name: str) -> None:
        self.plugins.add(name)

    def type_export_policy(self, policy: str) -> None:
        if policy not in EXPORT_POLICIES:
            raise SpecificationError(
                f"unknown type export policy '{policy}', expected one of {', '.join(EXPORT_POLICIES)}"
            )
        self.export_policy = policy  # type: ignore[assignment]

    def export_types(self, *names: str) -> None:
        self.export_policy = "selected"
        self.selected_types.update(normalize_typename(n) for n in names)

    # -- type loading ---------------------------------------------------------

    def load(self, header: str, types: TypeRegistry | None = None, pending: bool = True) -> None:
        """Register a header whose types this typekit defines.

        types, when given, are the definitions the header contains; otherwise
        the project's header importer is asked for them.
        """
        self.pending_loads.append((str(header), types))
        if not pending:
            self.perform_pending_loads()

    def perform_pending_loads(self) -> None:
        while self.pending_loads:
            header, types = self.pending_loads.pop(0)
            if types is None:
                types = self.project.header_importer.import_header(
                    header, sorted(self.include_dirs)
                )
            logger.info("Typekit %s: loading %s (%d types)", self.name, header, len(types))
            # Both merges are computed first so a conflict leaves nothing half-applied
            own = self.registry.merged(types)
            self.project.register_types(types)
            self.registry = own
            previous = self.loads.get(header)
            self.loads[header] = previous.merged(types) if previous else types

    def find_type(self, typename: str) -> TypeDefinition:
        """Define a derived type (e.g. std::vector<T>) in this typekit."""
        definition = self.project.registry.build(typename)
        self.registry.add(definition)
        return definition

    # -- queries --------------------------------------------------------------

    def self_types(self) -> list[TypeDefinition]:
        """Types defined by this typekit and not by an imported one."""
        return [
            t for t in self.registry
            if not any(tk.includes(t.name) for tk in self.used_typekits)
        ]

    def _with_dependencies(self, names: Iterable[str]) -> set[str]:
        result: set[str] = set()
        queue = list(names)
        while queue:
            name = queue.pop()
            if name in result:
                continue
            definition = self.registry.get(name)
            if definition is None:
                continue
            result.add(definition.name)
            queue.extend(definition.dependencies())
        return result

    def interface_types(self) -> list[TypeDefinition]:
        """Types this typekit registers in the runtime interface type system."""
        own = {t.name: t for t in self.self_types()}
        if self.export_policy == "all":
            names = set(own)
        elif self.export_policy == "selected":
            unknown = sorted(n for n in self.selected_types if n not in own)
            if unknown:
                raise SpecificationError(
                    f"cannot export types not defined by typekit {self.name}: {', '.join(unknown)}"
                )
            names = self._with_dependencies(self.selected_types)
        else:
            used = {
                t.name
                for task in self.project.self_tasks
                for t in task.interface_types()
            }
            names = self._with_dependencies(used)
        return [own[n] for n in sorted(names) if n in own and not own[n].is_opaque]

    def typelist_entries(self) -> dict[str, bool]:
        exported = {t.name for t in self.interface_types()}
        return {t.name: t.name in exported for t in self.self_types()}

    def dependencies(self) -> list[BuildDependency]:
        """Build dependencies of the typekit library itself."""
        target = self.project.target
        deps = [core_dependency("OrocosRTT", f"orocos-rtt-{target}")]
        for pkg, link in self.used_libraries:
            deps.append(core_dependency(pkg.name, pkg.name, link=link))
        linked = [tk for tk in self.used_typekits if not tk.virtual]
        for tk in linked:
            deps.append(core_dependency(f"{tk.name}_TYPEKIT", f"{tk.name}-typekit-{target}"))
        # Transport plugins live in their own context
        for transport in sorted(self.plugins):
            plugin_deps = [
                BuildDependency(
                    var_name=f"OROCOS_RTT_{transport.upper()}",
                    pkg_name=f"orocos-rtt-{transport}-{target}",
                )
            ]
            plugin_deps.extend(
                BuildDependency(
                    var_name=f"{tk.name}_TRANSPORT_{transport.upper()}",
                    pkg_name=f"{tk.name}-transport-{transport}-{target}",
                )
                for tk in linked
            )
            deps.extend(
                dep.in_context(transport, "include").in_context(transport, "link")
                for dep in plugin_deps
            )
        return deps

    # -- generation -----------------------------------------------------------

    def generate(self, ctx: "GenerationContext") -> None:
        self.perform_pending_loads()
        interface = self.interface_types()
        bindings = dict(
            project=self.project,
            typekit=self,
            target=ctx.target,
            interface_types=interface,
            self_types=sorted(self.self_types(), key=lambda t: t.name),
            dependencies=self.dependencies(),
        )
        types_hpp = ctx.renderer.render("typekit/Types.hpp", **bindings)
        ctx.emitter.save_automatic("typekit", "Types.hpp", types_hpp)

        own_registry = TypeRegistry(self.self_types())
        ctx.emitter.save_automatic("typekit", f"{self.name}.typekit.yaml", own_registry.to_yaml())
        ctx.emitter.save_automatic(
            "typekit", f"{self.name}.typelist", format_typelist(self.typelist_entries())
        )

        pc = ctx.renderer.render("typekit/typekit.pc", **bindings)
        ctx.emitter.save_automatic("typekit", f"{self.name}-typekit.pc.in", pc)
        cmake = ctx.renderer.render("typekit/CMakeLists.txt", **bindings)
        ctx.emitter.save_automatic("typekit", "CMakeLists.txt", cmake)
