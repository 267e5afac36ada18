"""Tests for the click CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from type_bundle.cli import cli

FIXTURES = Path(__file__).parent / "fixtures"
SRC = FIXTURES / "project" / "src"

try:
    import tree_sitter_language_pack  # noqa: F401
    HAS_TREESITTER = True
except ImportError:
    HAS_TREESITTER = False

needs_treesitter = pytest.mark.skipif(not HAS_TREESITTER, reason="tree-sitter not installed")


@pytest.fixture
def runner():
    return CliRunner()


def test_help(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("bundle", "batch", "scan"):
        assert command in result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_bundle_requires_type(runner):
    result = runner.invoke(cli, ["bundle", "-i", str(SRC / "index.ts")])
    assert result.exit_code != 0
    assert "--type" in result.output


def test_batch_requires_entries(runner):
    result = runner.invoke(cli, ["batch"])
    assert result.exit_code != 0
    assert "Specify at least one --entry" in result.output


def test_batch_rejects_malformed_entry(runner):
    result = runner.invoke(cli, ["batch", "-e", "invalid_format"])
    assert result.exit_code == 1
    assert "Invalid entry point" in result.output


@needs_treesitter
class TestWithProject:
    def test_bundle_to_stdout(self, runner):
        result = runner.invoke(cli, ["bundle", "-i", str(SRC / "index.ts"), "-t", "UserProfile"])
        assert result.exit_code == 0, result.output
        assert "export interface UserProfile {" in result.output
        assert "export interface Config_config_b {" in result.output

    def test_bundle_to_file(self, runner, tmp_path):
        out = tmp_path / "types" / "profile.d.ts"
        result = runner.invoke(cli, [
            "bundle", "-i", str(SRC / "index.ts"), "-t", "UserProfile", "-o", str(out),
        ])
        assert result.exit_code == 0, result.output
        assert "export interface UserProfile {" in out.read_text(encoding="utf-8")

    def test_bundle_alias(self, runner):
        result = runner.invoke(cli, [
            "bundle", "-i", str(SRC / "utils" / "user.ts"), "-t", "User", "-a", "UserDTO",
        ])
        assert result.exit_code == 0, result.output
        assert "export interface UserDTO {" in result.output

    def test_bundle_missing_type(self, runner):
        result = runner.invoke(cli, ["bundle", "-i", str(SRC / "index.ts"), "-t", "Nope"])
        assert result.exit_code == 1
        assert "Entry type 'Nope' not found" in result.output

    def test_bundle_warning(self, runner):
        result = runner.invoke(cli, ["bundle", "-i", str(SRC / "external.ts"), "-t", "Stream"])
        assert result.exit_code == 0
        assert "warning:" in result.output
        assert "Observable" in result.output

    def test_batch(self, runner, tmp_path):
        result = runner.invoke(cli, [
            "batch",
            "-e", f"{SRC / 'utils' / 'user.ts'}:User",
            "-e", f"{SRC / 'index.ts'}:UserProfile:Profile",
            "-d", str(tmp_path),
        ])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "User.d.ts").exists()
        assert (tmp_path / "Profile.d.ts").exists()
        manifest = json.loads((tmp_path / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["total_bundles"] == 2

    def test_batch_from_config(self, runner, tmp_path):
        config = tmp_path / "bundles.yaml"
        config.write_text(
            f"root: {FIXTURES / 'project'}\n"
            "output_dir: out\n"
            "entries:\n"
            f"  - file: {SRC / 'tree.ts'}\n"
            "    type: TreeNode\n",
            encoding="utf-8",
        )
        result = runner.invoke(cli, ["batch", "--config", str(config)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "out" / "TreeNode.d.ts").exists()

    def test_batch_no_globals(self, runner, tmp_path):
        entry = f"{SRC / 'external.ts'}:Stream"
        with_globals = runner.invoke(cli, ["batch", "-e", entry, "-d", str(tmp_path / "a")])
        assert with_globals.exit_code == 0, with_globals.output
        assert "AppEnv" not in with_globals.output

        result = runner.invoke(cli, ["batch", "--no-globals", "-e", entry, "-d", str(tmp_path / "b")])
        assert result.exit_code == 0, result.output
        assert "cannot resolve 'AppEnv'" in result.output
        assert "declare interface AppEnv" not in (tmp_path / "b" / "Stream.d.ts").read_text(encoding="utf-8")

    def test_batch_merge(self, runner, tmp_path):
        result = runner.invoke(cli, [
            "batch", "--merge", "-d", str(tmp_path),
            "-e", f"{SRC / 'config-a.ts'}:Config",
            "-e", f"{SRC / 'config-b.ts'}:Config",
        ])
        assert result.exit_code == 0, result.output
        text = (tmp_path / "bundle.d.ts").read_text(encoding="utf-8")
        assert "Config_config_b" in text

    def test_scan(self, runner):
        result = runner.invoke(cli, ["scan", str(SRC / "barrel.ts")])
        assert result.exit_code == 0, result.output
        assert "Re-exports:" in result.output
        assert "Account = User from ./utils/user" in result.output

    def test_scan_declarations(self, runner):
        result = runner.invoke(cli, ["scan", str(SRC / "utils" / "user.ts")])
        assert result.exit_code == 0, result.output
        assert "User" in result.output
        assert "Imports:" in result.output
