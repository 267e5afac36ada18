"""Bundling core: walk, name, rewrite, emit."""

from type_bundle.bundler.emitter import BundleEmitter
from type_bundle.bundler.graph import build_reference_graph, find_cycles
from type_bundle.bundler.naming import CollisionResolver, file_suffix
from type_bundle.bundler.rewriter import ReferenceRewriter
from type_bundle.bundler.walker import DependencyWalker, WalkResult

__all__ = [
    "BundleEmitter",
    "CollisionResolver",
    "DependencyWalker",
    "ReferenceRewriter",
    "WalkResult",
    "build_reference_graph",
    "file_suffix",
    "find_cycles",
]
