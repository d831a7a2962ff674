"""Command-line entry point.

Two forms are accepted::

    astgraph -repo <repository dir> -source <go file or directory>
    astgraph -repo <repository dir> <verb> [args]

Verbs: ``parse <path>``, ``types [name]``, ``calls [name]``,
``impls <interface>``, ``deps [package]``, ``export <file.kgl>``.
Every verb except ``parse`` only reads the stored graph.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import AstGraphError
from .module import AstModule
from .settings import discover_settings, load_settings
from .store import GRAPH_FILENAME, MemoryStore


def _print_warnings(module: AstModule) -> None:
    # Always printed, regardless of verbose
    warnings = module.warnings
    if warnings:
        print(f"\n  {len(warnings)} warning(s):")
        for w in warnings:
            print(f"    [{w['context']}] {w['message']}")


def cmd_parse(args: argparse.Namespace, module: AstModule) -> int:
    path = args.path if args.cmd == "parse" else args.source
    print(f"Processing {path}...")
    module.analyze(path)
    _print_warnings(module)

    graph_file = Path(args.repo) / GRAPH_FILENAME
    module.store.save(graph_file)
    if module.settings.verbose:
        print(f"  Saved to {graph_file}")

    if module.settings.export_path:
        from .export import save_knowledge_graph
        save_knowledge_graph(module.store, module.settings.export_path,
                             verbose=module.settings.verbose)

    print("AST analysis complete")
    return 0


def cmd_types(args: argparse.Namespace, module: AstModule) -> int:
    for t in module.show_types(args.name):
        print(f"{t['name']}: {t['type']}")
        if t["methods"]:
            print(f"  Methods: {', '.join(t['methods'])}")
        if t["embedded"]:
            print(f"  Embedded: {', '.join(t['embedded'])}")
    return 0


def cmd_calls(args: argparse.Namespace, module: AstModule) -> int:
    current = None
    for caller, callee in module.show_calls(args.name):
        if caller != current:
            print(f"{caller}:")
            current = caller
        print(f"  calls: {callee}")
    return 0


def cmd_impls(args: argparse.Namespace, module: AstModule) -> int:
    for impl in module.show_implementations(args.name):
        print(f"{impl} implements {args.name}")
    return 0


def cmd_deps(args: argparse.Namespace, module: AstModule) -> int:
    current = None
    for pkg, path in module.show_dependencies(args.package):
        if pkg != current:
            print(f"{pkg}:")
            current = pkg
        print(f"  imports: {path}")
    return 0


def cmd_export(args: argparse.Namespace, module: AstModule) -> int:
    from .export import save_knowledge_graph
    save_knowledge_graph(module.store, args.output, verbose=module.settings.verbose)
    print(f"Exported {len(module.store.nodes())} nodes to {args.output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="astgraph",
        description="Analyze Go source code into a queryable graph",
    )
    parser.add_argument("-repo", "--repo", dest="repo",
                        help="Path to the graph repository directory")
    parser.add_argument("-source", "--source", dest="source",
                        help="Path to Go source file or directory")
    parser.add_argument("--config", help="Settings JSON file "
                        "(default: <repo>/astgraph.json when present)")
    parser.add_argument("-v", "--verbose", action="store_true", default=None,
                        help="Print progress information")
    parser.add_argument("--strict", action="store_true", default=None,
                        help="Fail on any unparsable file and report unresolved names")

    sub = parser.add_subparsers(dest="cmd")

    pp = sub.add_parser("parse", help="Parse Go source files into the graph")
    pp.add_argument("path", help="Go file or directory")
    pp.set_defaults(func=cmd_parse)

    pt = sub.add_parser("types", help="Show type relationships")
    pt.add_argument("name", nargs="?", help="Type name")
    pt.set_defaults(func=cmd_types)

    pc = sub.add_parser("calls", help="Show function call graph")
    pc.add_argument("name", nargs="?", help="Function name")
    pc.set_defaults(func=cmd_calls)

    pi = sub.add_parser("impls", help="Find interface implementations")
    pi.add_argument("name", help="Interface name")
    pi.set_defaults(func=cmd_impls)

    pd_ = sub.add_parser("deps", help="Show package dependencies")
    pd_.add_argument("package", nargs="?", help="Package name")
    pd_.set_defaults(func=cmd_deps)

    pe = sub.add_parser("export", help="Write the graph as a KGLite .kgl file")
    pe.add_argument("output", help="Output .kgl path")
    pe.set_defaults(func=cmd_export)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.repo or (args.cmd is None and not args.source):
        parser.print_usage(sys.stderr)
        print("astgraph: error: -repo and either -source or a command are required",
              file=sys.stderr)
        return 1
    if args.cmd is None:
        args.func = cmd_parse

    try:
        settings = (load_settings(args.config) if args.config
                    else discover_settings(args.repo))
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1
    settings = settings.override(verbose=args.verbose, strict=args.strict)

    try:
        store = MemoryStore.open(args.repo)
        return args.func(args, AstModule(store, settings))
    except AstGraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
