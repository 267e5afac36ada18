"""Tests for entry-point parsing and batch configuration files."""

import json

import pytest

from type_bundle.config import load_batch_config
from type_bundle.errors import BundleError
from type_bundle.exporter import bundle_file_name
from type_bundle.models import EntryPoint


class TestEntryPoint:
    def test_path_and_type(self):
        assert EntryPoint.parse("src/user.ts:User") == EntryPoint("src/user.ts", "User")

    def test_alias(self):
        entry = EntryPoint.parse("src/user.ts:User:UserDTO")
        assert entry.alias == "UserDTO"
        assert entry.output_name == "UserDTO"

    def test_windows_drive_letter(self):
        entry = EntryPoint.parse("C:\\proj\\src\\user.ts:User:Dto")
        assert entry == EntryPoint("C:\\proj\\src\\user.ts", "User", "Dto")

    @pytest.mark.parametrize("spec", ["invalid_format", "src/user.ts:", ":User", "a.ts:1Bad"])
    def test_invalid(self, spec):
        with pytest.raises(ValueError, match="Invalid entry point"):
            EntryPoint.parse(spec)


class TestBundleFileName:
    def test_type_name(self):
        assert bundle_file_name(EntryPoint("a.ts", "Type123")) == "Type123.d.ts"

    def test_alias_sanitized(self):
        assert bundle_file_name(EntryPoint("a.ts", "User", "DTO$Type")) == "DTO_Type.d.ts"

    def test_numbered_when_taken(self):
        taken = set()
        names = [bundle_file_name(EntryPoint("a.ts", "User"), taken) for _ in range(3)]
        assert names == ["User.d.ts", "User_2.d.ts", "User_3.d.ts"]


class TestBatchConfig:
    def test_yaml(self, tmp_path):
        path = tmp_path / "bundles.yaml"
        path.write_text(
            "root: project\n"
            "output_dir: out\n"
            "entry_keeps_name: true\n"
            "entries:\n"
            "  - file: project/src/user.ts\n"
            "    type: User\n"
            "    alias: UserDTO\n"
            "  - file: /abs/order.ts\n"
            "    type: Order\n",
            encoding="utf-8",
        )
        config = load_batch_config(path)
        assert config.output_dir == tmp_path.resolve() / "out"
        assert config.entries == [
            EntryPoint(str(tmp_path.resolve() / "project" / "src" / "user.ts"), "User", "UserDTO"),
            EntryPoint("/abs/order.ts", "Order", None),
        ]
        bundle_config = config.bundle_config()
        assert bundle_config.project_root == tmp_path.resolve() / "project"
        assert bundle_config.entry_keeps_name is True
        assert bundle_config.include_globals is True

    def test_json(self, tmp_path):
        path = tmp_path / "bundles.json"
        path.write_text(json.dumps({
            "include_globals": False,
            "entries": [{"file": "a.ts", "type": "A"}],
        }), encoding="utf-8")
        config = load_batch_config(path)
        assert config.bundle_config().include_globals is False
        assert config.bundle_config().project_root is None
        assert config.output_dir == tmp_path.resolve() / "bundles"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_batch_config(path).entries == []

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("entries: []\noutput: x\n", encoding="utf-8")
        with pytest.raises(BundleError, match="Invalid config"):
            load_batch_config(path)

    def test_bad_type_name_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("entries:\n  - file: a.ts\n    type: not-valid\n", encoding="utf-8")
        with pytest.raises(BundleError):
            load_batch_config(path)

    def test_unparseable(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{ nope", encoding="utf-8")
        with pytest.raises(BundleError, match="Cannot parse"):
            load_batch_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(BundleError, match="Cannot read"):
            load_batch_config(tmp_path / "missing.yaml")
