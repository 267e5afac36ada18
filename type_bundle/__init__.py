"""type-bundle: collect a TypeScript type and its dependencies into one declaration file."""

__version__ = "0.1.0"
