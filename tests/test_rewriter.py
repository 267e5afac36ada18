"""Tests for header and reference rewriting."""

from type_bundle.bundler.naming import CollisionResolver
from type_bundle.bundler.rewriter import ReferenceRewriter, apply_edits, token_pattern
from type_bundle.models import (
    CollectedDeclaration,
    DeclarationKind,
    DeclarationRecord,
    NameAssignment,
    NamespaceFlattening,
    ReferenceSpan,
)


# ── Helpers ───────────────────────────────────────────────────

def _collected(path, name, text, refs=(), kind=DeclarationKind.INTERFACE, hint=None, **extra):
    record = DeclarationRecord(path, name, kind, text, frozenset(refs), **extra)
    return CollectedDeclaration(record, rename_hint=hint)


def _rewrite_all(*decls, flattenings=()):
    collected = {d.key: d for d in decls}
    assignment = CollisionResolver().resolve(collected)
    rewriter = ReferenceRewriter(assignment, collected, flattenings)
    return {d.key: rewriter.rewrite(d) for d in decls}


# ── Edits ─────────────────────────────────────────────────────

class TestApplyEdits:
    def test_applies_from_the_end(self):
        assert apply_edits("a b c", [(0, 1, "xx"), (4, 5, "zz")]) == "xx b zz"

    def test_overlap_keeps_earliest_longest(self):
        assert apply_edits("abc def", [(1, 2, "Y"), (0, 3, "X"), (4, 7, "Z")]) == "X Z"

    def test_no_edits(self):
        assert apply_edits("unchanged", []) == "unchanged"


class TestTokenPattern:
    def test_whole_token_only(self):
        pattern = token_pattern("User")
        assert [m.group() for m in pattern.finditer("User Users SuperUser $User User_")] == ["User"]

    def test_skips_member_access(self):
        assert not token_pattern("Foo").search("NS.Foo")

    def test_dotted_name_allows_spacing(self):
        assert token_pattern("NS.Foo").search("x: NS . Foo;")


# ── Rewriting ─────────────────────────────────────────────────

class TestReferenceRewriter:
    def test_header_renamed(self):
        a = _collected("/p/a.ts", "Config", "export interface Config { url: string }")
        b = _collected("/p/b.ts", "Config", "export interface Config { retries: number }")
        out = _rewrite_all(a, b)
        assert out[a.key] == "export interface Config { url: string }"
        assert out[b.key] == "export interface Config_b { retries: number }"

    def test_self_reference_follows_rename(self):
        a = _collected("/p/a.ts", "Node", "interface Node { v: string }")
        b = _collected("/p/b.ts", "Node", "interface Node {\n  next?: Node;\n}", refs={"Node"})
        out = _rewrite_all(a, b)
        assert out[b.key] == "interface Node_b {\n  next?: Node_b;\n}"

    def test_locality_prefers_same_file(self):
        a = _collected("/p/a.ts", "Config", "interface Config {}")
        b = _collected("/p/b.ts", "Config", "interface Config {}")
        service = _collected("/p/b.ts", "Service", "interface Service { config: Config }", refs={"Config"})
        holder = _collected("/p/a.ts", "Holder", "interface Holder { config: Config }", refs={"Config"})
        other = _collected("/p/c.ts", "Other", "interface Other { config: Config }", refs={"Config"})

        out = _rewrite_all(a, b, service, holder, other)
        assert out[service.key] == "interface Service { config: Config_b }"
        assert out[holder.key] == "interface Holder { config: Config }"
        # No local member: the one that kept the bare name
        assert out[other.key] == "interface Other { config: Config }"

    def test_binding_wins_over_locality(self):
        a = _collected("/p/a.ts", "Config", "interface Config {}")
        b = _collected("/p/b.ts", "Config", "interface Config {}")
        widget = _collected("/p/c.ts", "Widget", "interface Widget { config: Config }", refs={"Config"})
        widget.bindings["Config"] = b.key

        out = _rewrite_all(a, b, widget)
        assert out[widget.key] == "interface Widget { config: Config_b }"

    def test_unrenamed_declarations_untouched(self):
        user = _collected("/p/a.ts", "User", "interface User { address: Address }", refs={"Address"})
        address = _collected("/p/a.ts", "Address", "interface Address { city: string }")
        out = _rewrite_all(user, address)
        assert out[user.key] == user.record.raw_text
        assert out[address.key] == address.record.raw_text

    def test_namespace_flattening(self):
        x = _collected("/p/a.ts", "X", "export type X = NS.Foo | null;", refs={"NS.Foo"},
                       kind=DeclarationKind.TYPE_ALIAS)
        foo = _collected("/p/m.ts", "Foo", "export interface Foo { id: string }", hint="NS_Foo")
        x.bindings["NS.Foo"] = foo.key
        flattening = NamespaceFlattening("/p/a.ts", "NS.Foo", "NS_Foo")

        out = _rewrite_all(x, foo, flattenings=[flattening])
        assert out[x.key] == "export type X = NS_Foo | null;"
        assert out[foo.key] == "export interface NS_Foo { id: string }"

    def test_flattened_target_that_collided(self):
        x = _collected("/p/a.ts", "X", "type X = NS.Foo;", refs={"NS.Foo"}, kind=DeclarationKind.TYPE_ALIAS)
        foo = _collected("/p/m.ts", "Foo", "interface Foo {}", hint="NS_Foo")
        clash = _collected("/p/b.ts", "NS_Foo", "interface NS_Foo {}")
        x.bindings["NS.Foo"] = foo.key

        out = _rewrite_all(x, foo, clash, flattenings=[NamespaceFlattening("/p/a.ts", "NS.Foo", "NS_Foo")])
        assert out[clash.key] == "interface NS_Foo {}"
        assert out[foo.key] == "interface NS_Foo_m {}"
        assert out[x.key] == "type X = NS_Foo_m;"

    def test_alias_reference_keeps_importer_spelling(self):
        x = _collected("/p/a.ts", "X", "type X = Bar;", refs={"Bar"}, kind=DeclarationKind.TYPE_ALIAS)
        foo = _collected("/p/m.ts", "Foo", "export interface Foo {}", hint="Bar")
        x.bindings["Bar"] = foo.key

        out = _rewrite_all(x, foo)
        assert out[x.key] == "type X = Bar;"
        assert out[foo.key] == "export interface Bar {}"

    def test_alias_reference_follows_collision(self):
        x = _collected("/p/z.ts", "X", "type X = Bar;", refs={"Bar"}, kind=DeclarationKind.TYPE_ALIAS)
        foo = _collected("/p/m.ts", "Foo", "interface Foo {}", hint="Bar")
        bar = _collected("/p/a.ts", "Bar", "interface Bar {}")
        x.bindings["Bar"] = foo.key

        out = _rewrite_all(x, foo, bar)
        assert out[bar.key] == "interface Bar {}"
        assert out[foo.key] == "interface Bar_m {}"
        assert out[x.key] == "type X = Bar_m;"

    def test_qualified_head_rewritten(self):
        a = _collected("/p/a.ts", "Status", "enum Status { Open }", kind=DeclarationKind.ENUM)
        b = _collected("/p/b.ts", "Status", "enum Status { Active, Done }", kind=DeclarationKind.ENUM)
        task = _collected("/p/b.ts", "Task", "interface Task { s: Status.Active }", refs={"Status.Active"})
        task.bindings["Status.Active"] = b.key

        out = _rewrite_all(a, b, task)
        assert out[task.key] == "interface Task { s: Status_b.Active }"

    def test_other_declaration_header_skipped(self):
        text = "declare namespace Shapes {\n  interface Config {}\n  type Ref = Config;\n}"
        a = _collected("/p/a.ts", "Config", "interface Config {}")
        shapes = _collected("/p/b.ts", "Shapes", text, refs={"Config"}, kind=DeclarationKind.UNKNOWN)
        b = _collected("/p/b.ts", "Config", "interface Config {}")

        out = _rewrite_all(a, b, shapes)
        assert "interface Config {}" in out[shapes.key]
        assert "type Ref = Config_b;" in out[shapes.key]

    def test_spans_only_touch_recorded_references(self):
        text = "interface Config { a: Config; s: 'Config' }"
        start = text.index("Config", 17)
        a = _collected("/p/a.ts", "Config", "interface Config {}")
        b = _collected(
            "/p/b.ts", "Config", text, refs={"Config"},
            name_span=(10, 16),
            reference_spans=(ReferenceSpan("Config", start, start + 6),),
        )
        out = _rewrite_all(a, b)
        assert out[b.key] == "interface Config_b { a: Config_b; s: 'Config' }"

    def test_rewrite_all_produces_entries(self):
        a = _collected("/p/a.ts", "Config", "interface Config {}")
        b = _collected("/p/b.ts", "Config", "interface Config {}")
        collected = {a.key: a, b.key: b}
        assignment = NameAssignment()
        assignment.assign(a.key, "Config")
        assignment.assign(b.key, "Config_b")

        entries = ReferenceRewriter(assignment, collected).rewrite_all()
        by_file = {e.file_path: e for e in entries}
        assert by_file["/p/b.ts"].final_name == "Config_b"
        assert by_file["/p/b.ts"].original_name == "Config"
        assert by_file["/p/b.ts"].rewritten_text == "interface Config_b {}"
        assert by_file["/p/a.ts"].kind is DeclarationKind.INTERFACE
