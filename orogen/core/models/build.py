"""Build dependency records.

A BuildDependency says "the generated code needs package X, exposed to the
build system as variable Y, in these (context, relation) pairs", e.g.
{("core", "include"), ("core", "link")}.

Two dependencies with the same var_name describe the same package;
dedupe_build_dependencies() folds them into one carrying the union of pairs.
"""

from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field


class BuildDependency(BaseModel):
    """Immutable description of one package dependency."""

    model_config = ConfigDict(frozen=True)

    var_name: str = Field(description="Build-system variable prefix (e.g. 'base_TYPEKIT')")
    pkg_name: str = Field(description="Package name given to the locator")
    contexts: frozenset[tuple[str, str]] = Field(
        default_factory=frozenset,
        description="(context, relation) pairs, e.g. ('core', 'link')",
    )

    def in_context(self, context: str, relation: str) -> "BuildDependency":
        """Return a copy that is also needed for relation in context."""
        return self.model_copy(
            update={"contexts": self.contexts | {(context, relation)}}
        )

    def has_context(self, context: str, relation: str | None = None) -> bool:
        """True if this dependency is needed in context (for relation, if given)."""
        return any(
            ctx == context and (relation is None or rel == relation)
            for ctx, rel in self.contexts
        )

    def merged(self, other: "BuildDependency") -> "BuildDependency":
        """Union of both relation sets. Both must describe the same variable."""
        if other.var_name != self.var_name:
            raise ValueError(
                f"cannot merge build dependencies {self.var_name} and {other.var_name}"
            )
        return self.model_copy(update={"contexts": self.contexts | other.contexts})

    def relations(self, context: str) -> list[str]:
        """Sorted relations this dependency has in context."""
        return sorted(rel for ctx, rel in self.contexts if ctx == context)

    def __str__(self) -> str:
        pairs = ", ".join(f"{c}:{r}" for c, r in sorted(self.contexts))
        return f"{self.var_name} ({self.pkg_name}) [{pairs}]"


def core_dependency(var_name: str, pkg_name: str, link: bool = True) -> BuildDependency:
    """Dependency needed for core includes, and core linking unless link=False."""
    dep = BuildDependency(var_name=var_name, pkg_name=pkg_name).in_context(
        "core", "include"
    )
    if link:
        dep = dep.in_context("core", "link")
    return dep


def dedupe_build_dependencies(deps: Iterable[BuildDependency]) -> list[BuildDependency]:
    """Merge dependencies sharing a var_name and sort the result by var_name."""
    by_name: dict[str, BuildDependency] = {}
    for dep in deps:
        existing = by_name.get(dep.var_name)
        by_name[dep.var_name] = existing.merged(dep) if existing else dep
    return [by_name[name] for name in sorted(by_name)]
