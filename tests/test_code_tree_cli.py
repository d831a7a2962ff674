"""Tests for the astgraph command line."""

import json

import pytest

from astgraph.cli import main
from astgraph.store import GRAPH_FILENAME


@pytest.fixture
def repo(tmp_path):
    return tmp_path / "repo"


@pytest.fixture
def parsed_repo(repo, zoo_dir, capsys):
    assert main(["-repo", str(repo), "-source", str(zoo_dir)]) == 0
    capsys.readouterr()
    return repo


class TestParse:

    def test_source_flag(self, repo, zoo_dir, capsys):
        assert main(["-repo", str(repo), "-source", str(zoo_dir)]) == 0
        out = capsys.readouterr().out
        assert f"Processing {zoo_dir}..." in out
        assert out.rstrip().endswith("AST analysis complete")
        assert (repo / GRAPH_FILENAME).exists()

    def test_parse_verb(self, repo, zoo_dir, capsys):
        assert main(["-repo", str(repo), "parse", str(zoo_dir)]) == 0
        assert "AST analysis complete" in capsys.readouterr().out
        saved = json.loads((repo / GRAPH_FILENAME).read_text())
        assert any(n["content"] == "Greeter" for n in saved["nodes"])

    def test_bad_source(self, repo, tmp_path, capsys):
        assert main(["-repo", str(repo), "-source", str(tmp_path / "nope")]) == 1
        assert "Error: parsing files:" in capsys.readouterr().err

    def test_warnings_always_printed(self, repo, write_go, tmp_path, capsys):
        write_go("src/a.go", "package p\n\nfunc A() {}\n")
        write_go("src/b.go", "package p\n\nfunc B( {\n")
        assert main(["-repo", str(repo), "-source", str(tmp_path / "src")]) == 0
        out = capsys.readouterr().out
        assert "1 warning(s)" in out
        assert "b.go" in out

    def test_strict_flag(self, repo, write_go, tmp_path, capsys):
        write_go("src/a.go", "package p\n\nfunc A() {}\n")
        write_go("src/b.go", "package p\n\nfunc B( {\n")
        assert main(["-repo", str(repo), "--strict",
                     "-source", str(tmp_path / "src")]) == 1
        assert "1 of 2 files failed" in capsys.readouterr().err


class TestQueries:

    def test_types(self, parsed_repo, capsys):
        assert main(["-repo", str(parsed_repo), "types", "Dog"]) == 0
        assert capsys.readouterr().out == "Dog: struct\n  Methods: Greet\n"

    def test_calls(self, parsed_repo, capsys):
        assert main(["-repo", str(parsed_repo), "calls", "Run"]) == 0
        assert capsys.readouterr().out == "Run:\n  calls: helper\n"

    def test_impls(self, parsed_repo, capsys):
        assert main(["-repo", str(parsed_repo), "impls", "Greeter"]) == 0
        assert capsys.readouterr().out == "Dog implements Greeter\n"

    def test_deps(self, parsed_repo, capsys):
        assert main(["-repo", str(parsed_repo), "deps"]) == 0
        assert capsys.readouterr().out == "zoo:\n  imports: fmt\n  imports: net/http\n"

    def test_unknown_name_prints_nothing(self, parsed_repo, capsys):
        assert main(["-repo", str(parsed_repo), "impls", "Nope"]) == 0
        assert capsys.readouterr().out == ""


class TestUsage:

    def test_no_arguments(self, capsys):
        assert main([]) == 1
        assert "-repo" in capsys.readouterr().err

    def test_repo_without_source_or_command(self, repo, capsys):
        assert main(["-repo", str(repo)]) == 1

    def test_impls_requires_name(self, repo):
        with pytest.raises(SystemExit):
            main(["-repo", str(repo), "impls"])


class TestSettings:

    def test_repo_settings_discovered(self, repo, zoo_dir, capsys):
        repo.mkdir()
        (repo / "astgraph.json").write_text(json.dumps({"settings": {"verbose": True}}))
        assert main(["-repo", str(repo), "-source", str(zoo_dir)]) == 0
        assert "Saved to" in capsys.readouterr().out

    def test_malformed_config(self, repo, tmp_path, zoo_dir, capsys):
        config = tmp_path / "bad.json"
        config.write_text("{")
        assert main(["-repo", str(repo), "--config", str(config),
                     "-source", str(zoo_dir)]) == 1
        assert "Error loading settings" in capsys.readouterr().err
