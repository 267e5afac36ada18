"""Declaration index populated programmatically."""

from __future__ import annotations

from type_bundle.index.base import DeclarationIndex
from type_bundle.models import (
    DeclarationKind,
    DeclarationRecord,
    FileDeclarations,
    ImportEdge,
    ImportStyle,
    ReExportEdge,
)


class InMemoryIndex(DeclarationIndex):
    """Holds FileDeclarations built by the caller instead of parsed from disk."""

    def __init__(self):
        super().__init__()
        self._files: dict[str, FileDeclarations] = {}
        self._globals: dict[str, DeclarationRecord] = {}

    @property
    def files(self) -> list[str]:
        return sorted(self._files)

    def add_file(self, file_path: str) -> FileDeclarations:
        return self._files.setdefault(file_path, FileDeclarations(file_path=file_path))

    def add_declaration(
        self,
        file_path: str,
        name: str,
        kind: DeclarationKind,
        raw_text: str,
        references: set[str] | frozenset[str] | None = None,
    ) -> DeclarationRecord:
        record = DeclarationRecord(
            file_path=file_path,
            name=name,
            kind=kind,
            raw_text=raw_text,
            referenced_names=frozenset(references or ()),
        )
        self.add_record(record)
        return record

    def add_record(self, record: DeclarationRecord) -> None:
        file_decls = self.add_file(record.file_path)
        if record.kind == DeclarationKind.INTERFACE:
            file_decls.interface_decls[record.name] = record
        else:
            file_decls.type_decls[record.name] = record

    def add_import(
        self,
        file_path: str,
        local_identifier: str,
        module_specifier: str,
        exported_name: str | None = None,
        style: ImportStyle = ImportStyle.NAMED,
    ) -> ImportEdge:
        edge = ImportEdge(
            from_file=file_path,
            local_identifier=local_identifier,
            exported_name=exported_name or local_identifier,
            import_style=style,
            module_specifier=module_specifier,
        )
        self.add_file(file_path).import_edges.append(edge)
        return edge

    def add_re_export(
        self,
        file_path: str,
        exported_name: str,
        module_specifier: str | None = None,
        source_name: str | None = None,
    ) -> ReExportEdge:
        edge = ReExportEdge(
            from_file=file_path,
            exported_name=exported_name,
            source_name=source_name or exported_name,
            module_specifier=module_specifier,
        )
        self.add_file(file_path).re_exports.append(edge)
        return edge

    def set_default_export(self, file_path: str, name: str) -> None:
        self.add_file(file_path).default_export = name

    def add_global(self, record: DeclarationRecord) -> None:
        self._globals.setdefault(record.name, record)
        self.add_record(record)

    def get_declarations(self, file_path: str) -> FileDeclarations | None:
        return self._files.get(file_path)

    def find_global(self, name: str) -> DeclarationRecord | None:
        return self._globals.get(name)
