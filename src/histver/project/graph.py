"""Module dependency graph: lookup, dependency closures, cycle detection."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional, Union

from ..exceptions import ConfigurationError, CyclicDependencyError, UnknownModuleError
from ..logging_config import get_logger
from .models import Module, ModuleId, format_ids

logger = get_logger(__name__)

ModuleRef = Union[Module, ModuleId, str]


class ModuleGraph:
    """Single source of truth for ``ModuleId -> Module`` lookups.

    Edges are directed: ``A -> B`` when A depends on B or B is the parent of A.
    Built once, immutable afterwards; dependency closures are memoized.
    """

    def __init__(self, modules: Iterable[Module]):
        self._modules: dict[ModuleId, Module] = {}
        for module in modules:
            if module.id in self._modules:
                raise ConfigurationError(
                    f"Module {module.id.coordinates} is defined twice",
                    details={
                        "first": str(self._modules[module.id].manifest),
                        "second": str(module.manifest),
                    },
                )
            self._modules[module.id] = module

        for module in self._modules.values():
            for ref in self._edges(module):
                if ref not in self._modules:
                    raise UnknownModuleError(ref.coordinates)

        self._all_dependencies: dict[ModuleId, tuple[Module, ...]] = {}
        self._check_cycles()

    # ── Lookup ─────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules[k] for k in sorted(self._modules))

    def __contains__(self, ref: object) -> bool:
        if isinstance(ref, Module):
            return ref.id in self._modules
        return ref in self._modules

    @property
    def ids(self) -> list[ModuleId]:
        return sorted(self._modules)

    def get(self, ref: ModuleRef) -> Module:
        """Module by ``Module``, ``ModuleId``, ``"group:name"`` or unique name."""
        if isinstance(ref, Module):
            ref = ref.id
        if isinstance(ref, ModuleId):
            module = self._modules.get(ref)
            if module is None:
                raise UnknownModuleError(ref.coordinates)
            return module

        if ":" in ref:
            return self.get(ModuleId.parse(ref))

        candidates = [m for i, m in sorted(self._modules.items()) if i.name == ref]
        if not candidates:
            raise UnknownModuleError(ref)
        if len(candidates) > 1:
            raise ConfigurationError(
                f"Module name {ref} is ambiguous",
                details={"candidates": format_ids(m.id for m in candidates)},
            )
        return candidates[0]

    # ── Relations ──────────────────────────────────────────────────

    def parent(self, ref: ModuleRef) -> Optional[Module]:
        module = self.get(ref)
        if module.parent_id is None:
            return None
        return self.get(module.parent_id)

    def direct_dependencies(self, ref: ModuleRef) -> tuple[Module, ...]:
        module = self.get(ref)
        return tuple(self.get(i) for i in sorted(module.dependency_ids))

    def all_dependencies(self, ref: ModuleRef) -> tuple[Module, ...]:
        """Transitive closure over dependencies and parent chains, sorted by id."""
        module = self.get(ref)
        cached = self._all_dependencies.get(module.id)
        if cached is None:
            found: set[ModuleId] = set()
            self._collect(module, found)
            cached = tuple(self._modules[i] for i in sorted(found))
            self._all_dependencies[module.id] = cached
        return cached

    def dependents(self, ref: ModuleRef) -> tuple[Module, ...]:
        """Modules whose closure contains ``ref``."""
        target = self.get(ref)
        return tuple(m for m in self if target in self.all_dependencies(m))

    def _collect(self, module: Module, found: set[ModuleId]) -> None:
        for dep_id in module.dependency_ids:
            if dep_id not in found:
                found.add(dep_id)
                self._collect(self._modules[dep_id], found)

        parent_id = module.parent_id
        while parent_id is not None and parent_id not in found:
            found.add(parent_id)
            parent = self._modules[parent_id]
            # parents bring their own dependencies along
            self._collect(parent, found)
            parent_id = parent.parent_id

    @staticmethod
    def _edges(module: Module) -> list[ModuleId]:
        edges = sorted(module.dependency_ids)
        if module.parent_id is not None:
            edges.append(module.parent_id)
        return edges

    def _check_cycles(self) -> None:
        adjacency = {i: self._edges(m) for i, m in self._modules.items()}
        for component in tarjan_scc(adjacency, set(adjacency)):
            if len(component) > 1:
                raise CyclicDependencyError(sorted(component))
            (only,) = component
            if only in adjacency[only]:
                raise CyclicDependencyError([only, only])
        logger.debug("Module graph: %d modules, no cycles", len(self._modules))


def tarjan_scc(
    adjacency: dict[ModuleId, list[ModuleId]], all_nodes: set[ModuleId]
) -> list[set[ModuleId]]:
    """Tarjan's algorithm for strongly connected components (iterative).

    Uses an explicit call stack to avoid Python recursion limits on deep
    dependency chains.
    """
    counter = 0
    scc_stack: list[ModuleId] = []
    on_stack: set[ModuleId] = set()
    index: dict[ModuleId, int] = {}
    lowlink: dict[ModuleId, int] = {}
    result: list[set[ModuleId]] = []

    for root in sorted(all_nodes):
        if root in index:
            continue

        call_stack: list[tuple] = []
        index[root] = lowlink[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        neighbors = [w for w in adjacency.get(root, []) if w in all_nodes]
        call_stack.append((root, iter(neighbors)))

        while call_stack:
            v, it = call_stack[-1]
            pushed = False
            for w in it:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    scc_stack.append(w)
                    on_stack.add(w)
                    w_neighbors = [n for n in adjacency.get(w, []) if n in all_nodes]
                    call_stack.append((w, iter(w_neighbors)))
                    pushed = True
                    break
                elif w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])

            if not pushed:
                call_stack.pop()
                if call_stack:
                    caller = call_stack[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[v])

                if lowlink[v] == index[v]:
                    component: set[ModuleId] = set()
                    while True:
                        w = scc_stack.pop()
                        on_stack.discard(w)
                        component.add(w)
                        if w == v:
                            break
                    result.append(component)

    return result
