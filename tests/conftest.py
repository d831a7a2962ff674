"""Shared fixtures for the astgraph test suite."""

import importlib.util
import textwrap

import pytest

from astgraph.kinds import LinkType
from astgraph.store import MemoryStore


def pytest_collect_file(parent, file_path):  # noqa: ARG001
    """Skip test_code_tree_* files when tree-sitter or its Go grammar is missing."""
    if file_path.name.startswith("test_code_tree") and file_path.suffix == ".py":
        for mod in ("tree_sitter", "tree_sitter_go"):
            if importlib.util.find_spec(mod) is None:
                return None  # skip collection entirely


@pytest.fixture
def store():
    """Empty in-memory graph store."""
    return MemoryStore()


@pytest.fixture
def write_go(tmp_path):
    """Write a dedented Go source file below tmp_path and return its path."""
    def _write(rel_path: str, text: str):
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def zoo_dir(write_go):
    """Package zoo: Greeter satisfied by Dog, and main -> Run -> helper.

    Files: zoo/animals.go (Greeter, Dog, Cat), zoo/main.go (Run, helper, main)
    """
    write_go("zoo/animals.go", """
        package zoo

        import "fmt"

        type Greeter interface {
            Greet()
        }

        type Dog struct {
            Name string
        }

        func (d Dog) Greet() {
            fmt.Println("woof", d.Name)
        }

        type Cat struct{}
    """)
    main = write_go("zoo/main.go", """
        package zoo

        import (
            "fmt"
            h "net/http"
        )

        func Run() {
            helper()
            d := Dog{Name: "rex"}
            d.Greet()
            fmt.Println(h.StatusOK)
        }

        func helper() {}

        func main() {
            Run()
        }
    """)
    return main.parent


@pytest.fixture
def triples():
    """Return a function giving {(source name, link type, target name)} of a store."""
    def _triples(store, link_type=None):
        found = set()
        for link in store.links():
            if link_type is not None and link.type is not LinkType(link_type):
                continue
            src = store.get_node(link.source)
            tgt = store.get_node(link.target)
            found.add((src.name, link.type.value, tgt.name))
        return found
    return _triples
