"""TypeScript declaration index built on tree-sitter."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from tree_sitter_language_pack import get_parser

from type_bundle.index.base import DeclarationIndex
from type_bundle.index.builtins import is_basic_or_utility_type
from type_bundle.models import (
    DeclarationKind,
    DeclarationRecord,
    FileDeclarations,
    ImportEdge,
    ImportStyle,
    ReExportEdge,
    ReferenceSpan,
)

logger = logging.getLogger(__name__)

# Node type -> DeclarationKind
_DECLARATION_KINDS: dict[str, DeclarationKind] = {
    "interface_declaration": DeclarationKind.INTERFACE,
    "type_alias_declaration": DeclarationKind.TYPE_ALIAS,
    "enum_declaration": DeclarationKind.ENUM,
    "class_declaration": DeclarationKind.CLASS,
    "abstract_class_declaration": DeclarationKind.CLASS,
    "internal_module": DeclarationKind.UNKNOWN,
    "module": DeclarationKind.UNKNOWN,
}

_NAME_TYPES = {"type_identifier", "identifier"}

_WHITESPACE_RE = re.compile(r"\s+")


def grammar_for(file_path: str) -> str:
    return "tsx" if file_path.endswith(".tsx") else "typescript"


def _text(node) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


def _string_value(node) -> str:
    text = _text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


class TypeScriptIndex(DeclarationIndex):
    """Indexes top-level type declarations, imports and re-exports of TS files."""

    extensions = (".ts", ".tsx", ".mts", ".cts")

    def __init__(self, root: Path | None = None, skip_dirs: list[str] | None = None):
        super().__init__(skip_dirs)
        self.root = root
        self._cache: dict[str, FileDeclarations | None] = {}
        self._parser_cache: dict[str, object] = {}
        self._globals: dict[str, DeclarationRecord] | None = None

    def get_declarations(self, file_path: str) -> FileDeclarations | None:
        if file_path in self._cache:
            return self._cache[file_path]
        try:
            source = Path(file_path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", file_path, e)
            result = None
        else:
            result = self.parse_source(file_path, source)
        self._cache[file_path] = result
        return result

    def parse_source(self, file_path: str, source: str) -> FileDeclarations:
        """Index source text as if it were the content of file_path."""
        source_bytes = source.encode("utf-8")
        tree = self._get_parser(grammar_for(file_path)).parse(source_bytes)
        result = FileDeclarations(file_path=file_path)
        for node in tree.root_node.named_children:
            if node.type in ("import_statement", "export_statement"):
                result.is_module = True
            self._visit_statement(node, source_bytes, result)
        logger.debug(
            "Indexed %s: %d declaration(s), %d import(s), %d re-export(s)",
            file_path, len(result.declarations),
            len(result.import_edges), len(result.re_exports),
        )
        return result

    def find_global(self, name: str) -> DeclarationRecord | None:
        if self._globals is None:
            self._globals = self._scan_globals()
        return self._globals.get(name)

    # ── Statements ─────────────────────────────────────────────

    def _visit_statement(self, node, source_bytes: bytes, result: FileDeclarations) -> None:
        if node.type == "import_statement":
            self._read_import(node, result)
        elif node.type == "export_statement":
            self._read_export(node, source_bytes, result)
        elif node.type == "ambient_declaration":
            self._read_ambient(node, source_bytes, result)
        else:
            decl = self._unwrap(node)
            if decl is not None:
                self._add_declaration(decl, node, source_bytes, result)

    def _read_import(self, node, result: FileDeclarations) -> None:
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return
        specifier = _string_value(source_node)
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            # Side-effect import
            return

        def add(local: str, exported: str, style: ImportStyle) -> None:
            result.import_edges.append(ImportEdge(
                from_file=result.file_path,
                local_identifier=local,
                exported_name=exported,
                import_style=style,
                module_specifier=specifier,
            ))

        for child in clause.named_children:
            if child.type == "identifier":
                add(_text(child), _text(child), ImportStyle.DEFAULT)
            elif child.type == "namespace_import":
                ident = next((c for c in child.named_children if c.type == "identifier"), None)
                if ident is not None:
                    add(_text(ident), "*", ImportStyle.NAMESPACE)
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name_node = spec.child_by_field_name("name")
                    if name_node is None:
                        continue
                    alias_node = spec.child_by_field_name("alias")
                    exported = _string_value(name_node)
                    local = _text(alias_node) if alias_node is not None else exported
                    add(local, exported, ImportStyle.NAMED)

    def _read_export(self, node, source_bytes: bytes, result: FileDeclarations) -> None:
        is_default = any(child.type == "default" for child in node.children)

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            decl = self._unwrap(declaration)
            if decl is not None:
                record = self._add_declaration(decl, node, source_bytes, result)
                if record is not None and is_default:
                    result.default_export = record.name
            elif declaration.type == "ambient_declaration":
                self._read_ambient(declaration, source_bytes, result, outer=node)
            return

        value = node.child_by_field_name("value")
        if value is not None:
            if is_default and value.type == "identifier":
                result.default_export = _text(value)
            return

        source_node = node.child_by_field_name("source")
        specifier = _string_value(source_node) if source_node is not None else None

        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name_node = spec.child_by_field_name("name")
                if name_node is None:
                    continue
                alias_node = spec.child_by_field_name("alias")
                name = _string_value(name_node)
                exported = _string_value(alias_node) if alias_node is not None else name
                result.re_exports.append(ReExportEdge(
                    from_file=result.file_path,
                    exported_name=exported,
                    source_name=name,
                    module_specifier=specifier,
                ))
            return

        # `export * from '...'`; `export * as ns from '...'` binds a value, not a type
        has_star = any(child.type == "*" for child in node.children)
        is_namespace = any(child.type == "namespace_export" for child in node.children)
        if specifier and has_star and not is_namespace:
            result.re_exports.append(ReExportEdge(
                from_file=result.file_path,
                exported_name="*",
                source_name="*",
                module_specifier=specifier,
            ))

    def _read_ambient(self, node, source_bytes: bytes, result: FileDeclarations, outer=None) -> None:
        decl = self._unwrap(node)
        if decl is not None:
            self._add_declaration(decl, outer or node, source_bytes, result)
            return
        # `declare global { ... }`
        if any(child.type == "global" for child in node.children):
            before = {record.name for record in result.declarations}
            for block in node.named_children:
                if block.type == "statement_block":
                    for stmt in block.named_children:
                        self._visit_statement(stmt, source_bytes, result)
            result.global_names.update(
                record.name for record in result.declarations if record.name not in before
            )

    def _unwrap(self, node):
        """Return the declaration node inside node, if node declares a type."""
        if node.type in _DECLARATION_KINDS:
            return node
        if node.type in ("ambient_declaration", "expression_statement"):
            for child in node.named_children:
                if child.type in _DECLARATION_KINDS:
                    return child
        return None

    # ── Declarations ───────────────────────────────────────────

    def _add_declaration(
        self, decl, outer, source_bytes: bytes, result: FileDeclarations,
    ) -> DeclarationRecord | None:
        name_node = decl.child_by_field_name("name")
        if name_node is None or name_node.type not in _NAME_TYPES:
            return None
        name = _text(name_node)
        kind = _DECLARATION_KINDS[decl.type]

        start = outer.start_byte
        raw_bytes = source_bytes[start:outer.end_byte]

        def to_char(offset: int) -> int:
            return len(raw_bytes[:offset - start].decode("utf-8", errors="replace"))

        refs = [] if kind == DeclarationKind.ENUM else self._collect_references(decl, name_node)
        record = DeclarationRecord(
            file_path=result.file_path,
            name=name,
            kind=kind,
            raw_text=raw_bytes.decode("utf-8", errors="replace"),
            referenced_names=frozenset(ref for ref, _, _ in refs),
            name_span=(to_char(name_node.start_byte), to_char(name_node.end_byte)),
            reference_spans=tuple(
                ReferenceSpan(ref, to_char(s), to_char(e)) for ref, s, e in refs
            ),
        )
        target = (
            result.interface_decls if kind == DeclarationKind.INTERFACE
            else result.type_decls
        )
        if name in target:
            logger.debug("Duplicate declaration %s in %s, keeping the first", name, result.file_path)
        else:
            target[name] = record
        return record

    def _collect_references(self, decl, name_node) -> list[tuple[str, int, int]]:
        """Type names used by decl, as (name, start_byte, end_byte)."""
        bound = self._bound_type_names(decl)
        refs: list[tuple[str, int, int]] = []

        def add(name: str, node) -> None:
            if name in bound or is_basic_or_utility_type(name):
                return
            refs.append((name, node.start_byte, node.end_byte))

        stack = [decl]
        while stack:
            node = stack.pop()
            if node == name_node or node.type == "type_query":
                continue
            if node.type == "nested_type_identifier":
                add(_WHITESPACE_RE.sub("", _text(node)), node)
                continue
            if node.type == "type_identifier":
                add(_text(node), node)
                continue
            if node.type == "extends_clause":
                # Class heritage is an expression, not a type
                for child in node.named_children:
                    if child.type == "identifier":
                        add(_text(child), child)
                    elif child.type == "member_expression":
                        add(_WHITESPACE_RE.sub("", _text(child)), child)
                    else:
                        stack.append(child)
                continue
            stack.extend(reversed(node.named_children))

        refs.sort(key=lambda r: r[1])
        return refs

    @staticmethod
    def _bound_type_names(decl) -> set[str]:
        """Type parameters, mapped-type keys and infer bindings declared inside decl."""
        bound: set[str] = set()
        stack = [decl]
        while stack:
            node = stack.pop()
            if node.type in ("type_parameter", "mapped_type_clause"):
                name_node = node.child_by_field_name("name")
                if name_node is not None:
                    bound.add(_text(name_node))
            elif node.type == "infer_type":
                for child in node.named_children:
                    if child.type == "type_identifier":
                        bound.add(_text(child))
                        break
            stack.extend(node.named_children)
        return bound

    # ── Globals ────────────────────────────────────────────────

    def _scan_globals(self) -> dict[str, DeclarationRecord]:
        found: dict[str, DeclarationRecord] = {}
        if self.root is None:
            return found
        for path in self.iter_source_files(self.root, (".d.ts",)):
            decls = self.get_declarations(str(path))
            if decls is None:
                continue
            for record in decls.declarations:
                if decls.is_module and record.name not in decls.global_names:
                    continue
                found.setdefault(record.name, record)
        logger.info("Scanned %d global declaration(s) under %s", len(found), self.root)
        return found

    def _get_parser(self, grammar_name: str):
        if grammar_name not in self._parser_cache:
            self._parser_cache[grammar_name] = get_parser(grammar_name)
        return self._parser_cache[grammar_name]
