"""Names the walker treats as leaves: primitives, utility types and lib globals."""

from __future__ import annotations

PRIMITIVE_TYPES = frozenset({
    "string", "number", "boolean", "any", "unknown", "never", "void",
    "null", "undefined", "object", "symbol", "bigint", "this",
})

UTILITY_TYPES = frozenset({
    "Partial", "Required", "Readonly", "Record", "Pick", "Omit",
    "Exclude", "Extract", "NonNullable", "Parameters",
    "ConstructorParameters", "ReturnType", "InstanceType",
    "ThisParameterType", "OmitThisParameter", "ThisType", "Awaited",
    "NoInfer", "Uppercase", "Lowercase", "Capitalize", "Uncapitalize",
})

# Globals from the TypeScript standard lib
LIB_TYPES = frozenset({
    "Array", "ReadonlyArray", "ArrayLike", "Promise", "PromiseLike",
    "Map", "ReadonlyMap", "WeakMap", "Set", "ReadonlySet", "WeakSet",
    "Date", "RegExp", "Error", "Function", "Object", "String", "Number",
    "Boolean", "Symbol", "BigInt", "PropertyKey", "Iterable", "Iterator",
    "IterableIterator", "AsyncIterable", "AsyncIterator", "Generator",
    "AsyncGenerator", "ArrayBuffer", "DataView", "Uint8Array", "JSON",
    "TemplateStringsArray",
})

_LEAF_TYPES = PRIMITIVE_TYPES | UTILITY_TYPES | LIB_TYPES


def is_basic_or_utility_type(name: str) -> bool:
    return name in _LEAF_TYPES
