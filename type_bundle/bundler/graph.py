"""Reference graph over collected declarations, built from walker bindings."""

from __future__ import annotations

from collections.abc import Mapping

import networkx as nx

from type_bundle.models import CollectedDeclaration, DeclKey


def build_reference_graph(collected: Mapping[DeclKey, CollectedDeclaration]) -> nx.DiGraph:
    """One node per declaration, one edge per resolved reference."""
    graph = nx.DiGraph()
    for key, decl in collected.items():
        graph.add_node(key, name=decl.name, kind=decl.kind.value)
    for key, decl in collected.items():
        for ref, target in decl.bindings.items():
            if target in collected:
                if graph.has_edge(key, target):
                    graph[key][target]["refs"].append(ref)
                else:
                    graph.add_edge(key, target, refs=[ref])
    return graph


def find_cycles(graph: nx.DiGraph) -> list[list[DeclKey]]:
    """Simple cycles, each rotated to start at its smallest key, sorted."""
    cycles = []
    for cycle in nx.simple_cycles(graph):
        start = cycle.index(min(cycle))
        cycles.append(cycle[start:] + cycle[:start])
    cycles.sort(key=lambda c: (len(c), c))
    return cycles
