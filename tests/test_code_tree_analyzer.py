"""Tests for type classification and call/usage attribution."""

import pytest

from astgraph.analyzer import Analyzer, TypeInfo
from astgraph.errors import NotReadyError
from astgraph.parsers import GoExtractor


def _analyze(path) -> Analyzer:
    ex = GoExtractor()
    ex.parse_path(path)
    analyzer = Analyzer(ex)
    analyzer.analyze()
    return analyzer


def test_requires_extractor():
    with pytest.raises(NotReadyError, match="extractor not set"):
        Analyzer().analyze()


def test_analyzed_flag(zoo_dir):
    analyzer = Analyzer()
    assert not analyzer.analyzed
    analyzer.set_extractor(GoExtractor())
    analyzer.extractor.parse_path(zoo_dir)
    analyzer.analyze()
    assert analyzer.analyzed


class TestTypes:

    def test_zoo_classification(self, zoo_dir):
        types = _analyze(zoo_dir).types
        assert set(types) == {"Greeter", "Dog", "Cat"}
        assert types["Greeter"].is_interface and not types["Greeter"].is_struct
        assert types["Dog"].is_struct and not types["Dog"].is_interface
        assert types["Greeter"].methods == ["Greet"]

    def test_empty_struct(self, zoo_dir):
        cat = _analyze(zoo_dir).types["Cat"]
        assert cat.methods == []
        assert cat.embedded == []

    def test_interface_method_order(self, write_go):
        path = write_go("shape.go", """
            package shape

            type Shape interface {
                Area() float64
                Perimeter() float64
                Name() string
            }
        """)
        assert _analyze(path).types["Shape"].methods == ["Area", "Perimeter", "Name"]

    def test_receiver_methods_on_structs(self, write_go):
        """Value and pointer receivers both contribute, each name once."""
        path = write_go("dog.go", """
            package zoo

            type Dog struct{}

            func (d Dog) Bark() {}

            func (d *Dog) Sit() {}

            func (d *Dog) Bark2() {}
        """)
        assert _analyze(path).types["Dog"].methods == ["Bark", "Sit", "Bark2"]

    def test_embedded_keeps_duplicates(self, write_go):
        path = write_go("emb.go", """
            package emb

            type Base struct{}

            type Outer struct {
                Base
                *Base
                Name string
            }
        """)
        assert _analyze(path).types["Outer"].embedded == ["Base", "Base"]

    def test_position(self, write_go):
        path = write_go("pos.go", "package pos\n\ntype T struct{}\n")
        assert _analyze(path).types["T"].position == f"{path}:3:6"

    def test_structs_and_interfaces_accessors(self, zoo_dir):
        analyzer = _analyze(zoo_dir)
        assert sorted(t.name for t in analyzer.structs()) == ["Cat", "Dog"]
        assert [t.name for t in analyzer.interfaces()] == ["Greeter"]


class TestSatisfies:

    def test_superset_satisfies(self):
        iface = TypeInfo("RW", is_struct=False, is_interface=True, methods=["Read"])
        struct = TypeInfo("File", is_struct=True, is_interface=False,
                          methods=["Read", "Close"])
        assert struct.satisfies(iface)

    def test_empty_interface_satisfied_by_nothing(self):
        iface = TypeInfo("Any", is_struct=False, is_interface=True)
        struct = TypeInfo("File", is_struct=True, is_interface=False, methods=["Read"])
        assert not struct.satisfies(iface)

    def test_method_set_tracks_additions(self):
        struct = TypeInfo("File", is_struct=True, is_interface=False)
        assert struct.method_set == frozenset()
        struct.add_method("Read")
        assert struct.method_set == {"Read"}


class TestCalls:

    def test_zoo_calls(self, zoo_dir):
        calls = _analyze(zoo_dir).calls
        assert calls == {"Run": ["helper"], "main": ["Run"]}

    def test_duplicate_calls_kept(self, write_go):
        path = write_go("dup.go", """
            package dup

            func A() {
                B()
                B()
            }

            func B() {}
        """)
        assert _analyze(path).calls == {"A": ["B", "B"]}

    def test_file_scope_calls_dropped(self, write_go):
        path = write_go("init.go", """
            package cfg

            var x = compute()

            func compute() int { return 1 }
        """)
        assert _analyze(path).calls == {}

    def test_selector_calls_not_recorded(self, write_go):
        path = write_go("sel.go", """
            package sel

            import "strings"

            func A(s string) string {
                return strings.ToUpper(s)
            }
        """)
        assert _analyze(path).calls == {}

    def test_function_literal_attributed_to_declaration(self, write_go):
        path = write_go("lit.go", """
            package lit

            func Outer() {
                f := func() {
                    Inner()
                }
                f()
            }

            func Inner() {}
        """)
        assert _analyze(path).calls == {"Outer": ["Inner", "f"]}

    def test_method_calls_use_method_name(self, write_go):
        path = write_go("m.go", """
            package m

            type S struct{}

            func (s *S) Run() {
                helper()
            }

            func helper() {}
        """)
        assert _analyze(path).calls == {"Run": ["helper"]}


class TestUses:

    def test_uses_in_signature_and_body(self, write_go):
        path = write_go("new.go", """
            package zoo

            type Dog struct{}

            func NewDog() *Dog {
                return &Dog{}
            }
        """)
        assert _analyze(path).uses == {"NewDog": ["Dog", "Dog"]}

    def test_receiver_counts_as_use(self, zoo_dir):
        uses = _analyze(zoo_dir).uses
        assert uses["Greet"] == ["Dog"]
        assert uses["Run"] == ["Dog"]

    def test_qualified_type_not_matched_locally(self, write_go):
        """``other.Dog`` names another package's Dog, not the local one."""
        path = write_go("q.go", """
            package p

            import "other"

            type Dog struct{}

            func F() {
                var d other.Dog
                _ = d
            }
        """)
        assert _analyze(path).uses == {}

    def test_conversion_counts_as_use(self, write_go):
        path = write_go("conv.go", """
            package p

            type ID struct{ v int }

            func F(x ID) {
                _ = ID(x)
            }
        """)
        analyzer = _analyze(path)
        assert analyzer.uses == {"F": ["ID", "ID"]}
        assert analyzer.calls == {"F": ["ID"]}

    def test_local_type_declaration_not_a_use(self, write_go):
        path = write_go("local.go", """
            package p

            func Run() {
                type pair struct{ a, b int }
                _ = pair{}
            }
        """)
        assert _analyze(path).uses == {"Run": ["pair"]}

    def test_undeclared_types_ignored(self, write_go):
        path = write_go("ext.go", """
            package ext

            import "bytes"

            type Local struct{}

            func F(b *bytes.Buffer, n int) Local {
                return Local{}
            }
        """)
        assert _analyze(path).uses == {"F": ["Local", "Local"]}
