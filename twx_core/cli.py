#!/usr/bin/env python3
"""
TWX Command Line Interface
==========================

Group responsive Tailwind classes in JSX/TSX files into twJoin() calls.

Usage:
    twx extract PATH...    Rewrite class attributes (in place by default)
    twx scan PATH          List the class attributes TWX can rewrite
    twx classify CLASSES   Show how a class string is grouped
    twx config             Show the effective configuration
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import yaml

from .ast_base import format_syntax_tree, get_ast_registry
from .classifier import classify_string
from .config import TWXConfig, config_to_dict, load_config, save_config
from .errors import TwxError
from .extractor import ClassExtractor, run_extract_command
from .host import EditorHost, FileHost, MemoryHost
from .patch_engine import generate_unified_diff
from .version import __version__

logger = logging.getLogger(__name__)

SKIP_DIRS = {"node_modules", "dist", "build", "__pycache__"}


# =============================================================================
# ANSI Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    BOLD = '\033[1m'
    NC = '\033[0m'  # No Color

    @classmethod
    def disable(cls):
        """Disable colors (for non-TTY output)."""
        cls.RED = cls.GREEN = cls.YELLOW = cls.BLUE = ''
        cls.CYAN = cls.BOLD = cls.NC = ''


def print_ok(msg: str) -> None:
    print(f"{Colors.GREEN}✓{Colors.NC} {msg}")


def print_warn(msg: str) -> None:
    print(f"{Colors.YELLOW}⚠{Colors.NC} {msg}")


def print_error(msg: str) -> None:
    print(f"{Colors.RED}✗{Colors.NC} {msg}", file=sys.stderr)


def print_header(msg: str) -> None:
    print(f"\n{Colors.BOLD}{Colors.CYAN}{msg}{Colors.NC}")
    print("=" * len(msg))


# =============================================================================
# Helpers
# =============================================================================

def parse_selection(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse a START:END selection argument."""
    if not value:
        return None
    try:
        start_text, end_text = value.split(":", 1)
        start, end = int(start_text), int(end_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid selection '{value}', expected START:END")
    if start < 0 or end < start:
        raise argparse.ArgumentTypeError(f"invalid selection '{value}', expected 0 <= START <= END")
    return start, end


def iter_source_files(paths: List[str]) -> Iterator[str]:
    """Expand directories into files with a registered parser; '-' is stdin."""
    extensions = set(get_ast_registry().list_extensions())
    for raw in paths:
        if raw == "-":
            yield raw
            continue
        path = Path(raw)
        if not path.is_dir():
            yield raw
            continue
        for candidate in sorted(path.rglob("*")):
            parts = candidate.relative_to(path).parts
            if any(part in SKIP_DIRS or part.startswith(".") for part in parts):
                continue
            if candidate.is_file() and candidate.suffix.lower() in extensions:
                yield str(candidate)


def _load_config(args: argparse.Namespace) -> TWXConfig:
    config = getattr(args, "twx_config", None)
    if config is None:
        config = load_config(Path(args.config) if getattr(args, "config", None) else None)
        args.twx_config = config
    if getattr(args, "strict", False):
        config.transform.strict_parse = True
    return config


def _make_host(source: str, selection, write: bool, stdin_name: str) -> EditorHost:
    if source == "-":
        return MemoryHost(sys.stdin.read(), selection, document_id=stdin_name)
    return FileHost(Path(source), selection, write=write)


# =============================================================================
# Commands
# =============================================================================

def cmd_extract(args: argparse.Namespace) -> int:
    """Rewrite class attributes."""
    config = _load_config(args)
    sources = list(iter_source_files(args.paths))
    if args.selection and len(sources) != 1:
        print_error("--selection needs exactly one file")
        return 2

    mode = "write"
    for name in ("diff", "check", "json", "stdout"):
        if getattr(args, name):
            mode = name

    status = 0
    reports = []
    for source in sources:
        if source != "-" and not Path(source).is_file():
            print_error(f"File not found: {source}")
            status = 1
            continue

        host = _make_host(source, args.selection, mode == "write", args.stdin_filename)
        batch = run_extract_command(host, config.transform)
        if batch is None:
            if isinstance(host, MemoryHost):
                for message in host.failures:
                    print_error(f"{source}: {message}")
            status = 1
            continue

        before = host.get_active_document_text()
        after = before
        if isinstance(host, MemoryHost):
            after = host.text
        elif host.result_text is not None:
            after = host.result_text

        count = len(batch.replacements)
        if mode == "diff":
            sys.stdout.write(generate_unified_diff(before, after, source))
        elif mode == "json":
            reports.append(batch.to_dict(before))
        elif mode == "stdout" or (mode == "write" and source == "-"):
            sys.stdout.write(after)
        elif mode == "check":
            if count:
                print_warn(f"{source}: {count} attribute(s) would be rewritten")
                status = 1
        elif count:
            print_ok(f"{source}: {count} attribute(s) rewritten" + (", import added" if batch.import_added else ""))

    if mode == "json":
        print(json.dumps(reports, indent=2, ensure_ascii=False))
    return status


def cmd_scan(args: argparse.Namespace) -> int:
    """List candidate attributes."""
    config = _load_config(args)
    extractor = ClassExtractor(config.transform)
    path = Path(args.path)
    if not path.is_file():
        print_error(f"File not found: {path}")
        return 1

    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            text = f.read()
        if args.tree:
            backend = extractor.backend_for(str(path))
            print(format_syntax_tree(backend.parse_string(text, str(path)), max_depth=args.depth))
            return 0
        candidates = extractor.scan(text, args.selection, str(path))
    except (TwxError, ValueError, OSError) as e:
        print_error(f"{path}: {e}")
        return 1

    if args.json:
        print(json.dumps([c.to_dict() for c in candidates], indent=2, ensure_ascii=False))
        return 0

    print_header(f"{path} ({len(candidates)} candidate(s))")
    for c in candidates:
        status = "rewrite" if extractor.rewriter.rewrite(c) is not None else "keep"
        print(f"  {c.line}:{c.column}  {c.shape.value:<14} {str(c.span):<14} {status:<8} {' | '.join(c.literals)}")
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    """Show the grouping of a class string."""
    config = _load_config(args)
    partition = classify_string(" ".join(args.classes), config.transform.prefixes)

    if args.json:
        print(json.dumps(partition.to_dict(), indent=2))
        return 0

    print(f"{Colors.BOLD}base{Colors.NC}: {' '.join(partition.base) or '-'}")
    for prefix, tokens in partition.buckets.items():
        print(f"{Colors.BOLD}{prefix}{Colors.NC} {' '.join(tokens)}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show or save the effective configuration."""
    config = _load_config(args)
    if args.save:
        save_config(config, Path(args.save))
        print_ok(f"Configuration saved to {args.save}")
        return 0
    print(yaml.safe_dump(config_to_dict(config), default_flow_style=False, sort_keys=False), end="")
    return 0


# =============================================================================
# Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twx",
        description="TWX - group responsive Tailwind classes into twJoin() calls",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  twx extract src/                     Rewrite every JSX/TSX file under src/
  twx extract App.tsx --diff           Show the changes without writing
  twx extract App.tsx --selection 120:480
  twx extract src/ --check             Exit 1 when files would change
  twx scan App.tsx                     List class attributes
  twx classify "p-4 sm:p-8 lg:p-12"    Show the grouping of a class string
        """,
    )
    parser.add_argument("--version", action="version", version=f"twx {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("-c", "--config", help="Path to twx.yaml (auto-detected by default)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # extract
    sub = subparsers.add_parser("extract", help="Rewrite class attributes")
    sub.add_argument("paths", nargs="+", help="Files or directories ('-' for stdin)")
    sub.add_argument("-s", "--selection", type=parse_selection, help="Only rewrite inside START:END")
    sub.add_argument("--strict", action="store_true", help="Fail on syntax errors")
    sub.add_argument("--stdin-filename", default="<stdin>.tsx", help="Document name used for stdin")
    output = sub.add_mutually_exclusive_group()
    output.add_argument("--diff", action="store_true", help="Print a unified diff instead of writing")
    output.add_argument("--check", action="store_true", help="Exit 1 if any file would change")
    output.add_argument("--json", action="store_true", help="Print the edit batches as JSON")
    output.add_argument("--stdout", action="store_true", help="Print the rewritten text")
    sub.set_defaults(func=cmd_extract)

    # scan
    sub = subparsers.add_parser("scan", help="List rewritable class attributes")
    sub.add_argument("path", help="File to scan")
    sub.add_argument("-s", "--selection", type=parse_selection, help="Only scan inside START:END")
    sub.add_argument("--strict", action="store_true", help="Fail on syntax errors")
    sub.add_argument("--tree", action="store_true", help="Print the syntax tree instead")
    sub.add_argument("--depth", type=int, default=10, help="Maximum tree depth for --tree")
    sub.add_argument("--json", action="store_true", help="JSON output")
    sub.set_defaults(func=cmd_scan)

    # classify
    sub = subparsers.add_parser("classify", help="Show how classes are grouped")
    sub.add_argument("classes", nargs="+", help="Class string(s)")
    sub.add_argument("--json", action="store_true", help="JSON output")
    sub.set_defaults(func=cmd_classify)

    # config
    sub = subparsers.add_parser("config", help="Show current configuration")
    sub.add_argument("--save", metavar="PATH", help="Write the configuration to PATH")
    sub.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    if not sys.stdout.isatty():
        Colors.disable()

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    config = _load_config(args)
    if not args.verbose:
        logging.getLogger().setLevel(config.logging.level)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
