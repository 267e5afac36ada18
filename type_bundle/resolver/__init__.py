"""Module resolver implementations."""

from __future__ import annotations

from type_bundle.resolver.base import ModuleResolver
from type_bundle.resolver.filesystem import FileSystemResolver
from type_bundle.resolver.memory import InMemoryResolver
from type_bundle.resolver.tsconfig import TsConfig, find_project_root, load_tsconfig

__all__ = [
    "FileSystemResolver",
    "InMemoryResolver",
    "ModuleResolver",
    "TsConfig",
    "find_project_root",
    "load_tsconfig",
]
