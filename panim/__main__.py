from __future__ import annotations
import argparse
import asyncio
import json
import sys
from pathlib import Path

from . import __version__
from .ciphers import apply, list_schemes, scheme_pairs
from .config import Settings
from .errors import CollaboratorError, EmptyInputError, ImportFormatError, InvalidScheme, NotFound
from .gematria import score
from .methods import load_catalog
from .text import acronym, strip_marks, text_stats
from .verses import find_verses
from .workbench import open_collaborator, open_workbench

def _text(args: argparse.Namespace) -> str:
    if args.text:
        return " ".join(args.text)
    return sys.stdin.read()

def cmd_gematria(args: argparse.Namespace) -> int:
    text = _text(args)
    print(score(text))
    return 0

def cmd_cipher(args: argparse.Namespace) -> int:
    text = _text(args)
    try:
        result = apply(args.scheme, text)
    except InvalidScheme as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    print(result)
    if args.score:
        print(f"gematria: {score(result)}")
    return 0

def cmd_schemes(args: argparse.Namespace) -> int:
    for s in list_schemes():
        aliases = ", ".join(s.aliases)
        print(f"{s.name} ({aliases}) {s.label}")
        print("  " + "  ".join(f"{a}-{b}" for a, b in scheme_pairs(s)))
    return 0

def cmd_acronym(args: argparse.Namespace) -> int:
    print(acronym(_text(args), mode=args.mode))
    return 0

def cmd_clean(args: argparse.Namespace) -> int:
    print(strip_marks(_text(args)))
    return 0

def cmd_stats(args: argparse.Namespace) -> int:
    stats = text_stats(_text(args))
    if args.json:
        print(json.dumps(stats.__dict__, indent=2))
        return 0
    for k, v in stats.__dict__.items():
        print(f"{k:>16}: {v}")
    return 0

def cmd_methods(args: argparse.Namespace) -> int:
    for lvl in load_catalog().levels:
        print(f"[{lvl.level}] {lvl.title}")
        for m in lvl.methods:
            print(f"  {m.id:<12} {m.name}")
    return 0

def cmd_analyze(args: argparse.Namespace) -> int:
    wb = open_workbench(Settings.from_env())
    if args.parent:
        try:
            wb.load(args.parent)
        except NotFound as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
    try:
        record = asyncio.run(wb.analyze(" ".join(args.query), args.methods))
    except EmptyInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(record.model_dump(by_alias=True, mode="json"), ensure_ascii=False, indent=2))
    else:
        for seg in record.analysis:
            print(f"## {seg.title}")
            print(seg.content)
            print()
        for card in record.cards:
            print(f"* {card.title} [{card.element} / {card.energy}] {card.score}")
    if not record.ok:
        print(f"[analyze] not saved: {record.diagnostic}", file=sys.stderr)
        return 1
    if wb.last_item is not None:
        print(f"[analyze] saved as {wb.last_item.id}", file=sys.stderr)
    return 0

def cmd_history(args: argparse.Namespace) -> int:
    wb = open_workbench(Settings.from_env())
    store = wb.store

    if args.action == "list":
        if not len(store):
            print("No history.")
        for item in store:
            parent = f" <- {item.parent_id}" if item.parent_id else ""
            print(f"{item.id}{parent}  {item.query[:60]}")
        return 0

    if args.action == "show":
        try:
            item = store.get(args.id)
        except NotFound as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(item.to_json_dict(), ensure_ascii=False, indent=2))
        return 0

    if args.action == "export":
        out = store.export_json(envelope=not args.bare)
        if args.output:
            Path(args.output).write_text(out, encoding="utf-8")
        else:
            print(out)
        return 0

    # import
    try:
        added = store.import_items(Path(args.input).read_bytes(), policy=args.policy)
    except ImportFormatError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(f"Imported {len(added)} item(s).")
    return 0

def cmd_verses(args: argparse.Namespace) -> int:
    text = _text(args)
    try:
        search = asyncio.run(find_verses(text, args.mode, open_collaborator(Settings.from_env())))
    except EmptyInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except CollaboratorError as e:
        print(f"error: verse search failed: {e}", file=sys.stderr)
        return 1

    if search.mode == "name":
        print(f"[verses] first {search.first}, last {search.last}", file=sys.stderr)
    else:
        print(f"[verses] gematria {search.value}", file=sys.stderr)
    for verse in search.verses:
        print(verse)
    return 0

def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn
    print(f"[serve] starting on http://{args.host}:{args.port}", file=sys.stderr, flush=True)
    uvicorn.run(
        "panim.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )
    return 0

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="panim", description="Hebrew text-analysis workbench")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    def text_cmd(name: str, help: str, func) -> argparse.ArgumentParser:
        sp = sub.add_parser(name, help=help)
        sp.add_argument("text", nargs="*", help="Text (read from stdin when omitted)")
        sp.set_defaults(func=func)
        return sp

    text_cmd("gematria", "Standard gematria value of a text", cmd_gematria)

    p_c = text_cmd("cipher", "Apply a letter substitution cipher", cmd_cipher)
    p_c.add_argument("--scheme", default="mirror-22", help="mirror-22 | split-half | decade-sum (or atbash, albam, atbah)")
    p_c.add_argument("--score", action="store_true", help="Also print the gematria of the result")

    p_sch = sub.add_parser("schemes", help="List cipher schemes and their letter pairs")
    p_sch.set_defaults(func=cmd_schemes)

    p_a = text_cmd("acronym", "Roshei / sofei tevot", cmd_acronym)
    p_a.add_argument("--mode", choices=["first", "last"], default="first")

    text_cmd("clean", "Strip nikud and cantillation marks", cmd_clean)

    p_st = text_cmd("stats", "Count characters, words, lines and sentences", cmd_stats)
    p_st.add_argument("--json", action="store_true", help="Output JSON")

    p_v = text_cmd("verses", "Find Tanakh verses for a name or a gematria value", cmd_verses)
    p_v.add_argument("--mode", choices=["name", "gematria"], default="name")

    p_m = sub.add_parser("methods", help="List analysis methods")
    p_m.set_defaults(func=cmd_methods)

    p_an = sub.add_parser("analyze", help="Run an analysis and save it to history")
    p_an.add_argument("query", nargs="+")
    p_an.add_argument("--method", "-m", dest="methods", action="append", default=[], help="Method id (repeatable)")
    p_an.add_argument("--parent", default=None, help="History item to branch from")
    p_an.add_argument("--json", action="store_true", help="Output JSON")
    p_an.set_defaults(func=cmd_analyze)

    p_h = sub.add_parser("history", help="Inspect, export or import history")
    hsub = p_h.add_subparsers(dest="action", required=True)
    hsub.add_parser("list", help="List items, newest first")
    p_hs = hsub.add_parser("show", help="Show one item as JSON")
    p_hs.add_argument("id")
    p_he = hsub.add_parser("export", help="Write history as JSON")
    p_he.add_argument("--output", "-o", default=None)
    p_he.add_argument("--bare", action="store_true", help="Plain array without the version envelope")
    p_hi = hsub.add_parser("import", help="Merge items from an exported file")
    p_hi.add_argument("input")
    p_hi.add_argument("--policy", choices=["append", "skip_existing", "replace"], default=None)
    p_h.set_defaults(func=cmd_history)

    p_srv = sub.add_parser("serve", help="Run FastAPI server")
    p_srv.add_argument("--host", default="127.0.0.1")
    p_srv.add_argument("--port", type=int, default=8000)
    p_srv.add_argument("--reload", action="store_true")
    p_srv.set_defaults(func=cmd_serve)

    return p

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)

if __name__ == "__main__":
    raise SystemExit(main())
