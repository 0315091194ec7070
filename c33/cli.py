"""Command-line driver: source file to tokens, SSA, assembly and executable."""

from __future__ import annotations

import argparse
import os
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from c33.generator import CodegenError, compile_program, generate_assembly, write_ssa
from c33.parser import ParseError, Parser
from c33.scanner import Scanner
from c33.tokenizer import Tokenizer
from c33.typecheck import TypeCheckError, check

_FLAGS = {
    "help": "show help message",
    "run": "run the compiled code",
    "ssa": "write SSA code to file",
    "tok": "write tokens to file",
}


class _StageError(Exception):
    """A compilation stage failed."""


@contextmanager
def _stage(what: str) -> Iterator[None]:
    try:
        yield
    except (OSError, ValueError, ParseError, TypeCheckError, CodegenError) as exc:
        raise _StageError(f"{what}: {exc}") from exc


def with_ext(filename: str, ext: str) -> str:
    """Replace the extension of ``filename`` with ``ext``, or append it."""
    name_start = max(filename.rfind("/"), filename.rfind(os.sep)) + 1
    dot = filename.rfind(".", name_start)
    if dot == -1:
        return filename + ext
    return filename[:dot] + ext


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="c33", add_help=False, allow_abbrev=False)
    for name, text in _FLAGS.items():
        parser.add_argument(f"-{name}", f"--{name}", action="store_true", help=text)
    parser.add_argument("source", nargs="?", default="example.in")
    return parser


def _print_help() -> None:
    print("Usage: c33 [options] [source_file]")
    print("Options:")
    for name, text in _FLAGS.items():
        print(f"  -{name}\n    \t{text}")


def _build(src_file: str, write_tokens: bool, write_ssa_file: bool, run: bool) -> None:
    out_dir = os.path.join(os.path.dirname(src_file), "out")
    with _stage("failed to create output directory"):
        os.makedirs(out_dir, exist_ok=True)

    base = os.path.basename(src_file)
    tok_file = os.path.join(out_dir, with_ext(base, ".tok"))
    ssa_file = os.path.join(out_dir, with_ext(base, ".ssa"))
    asm_file = os.path.join(out_dir, with_ext(base, ".s"))
    bin_file = os.path.join(out_dir, with_ext(base, ""))

    with _stage("failed to create scanner"):
        with open(src_file, "rb") as source:
            scanner = Scanner.from_stream(src_file, source)

    with _stage("failed to tokenize"):
        tokens = Tokenizer(scanner).tokens()

    if write_tokens:
        with _stage("failed to write tokens"):
            with open(tok_file, "w", encoding="utf-8", newline="") as out:
                out.writelines(f"{token}\n" for token in tokens)

    with _stage("failed to parse"):
        unit = Parser(tokens).parse()

    with _stage("type checking failed"):
        check(unit)

    if write_ssa_file:
        with _stage("failed to write SSA file"):
            write_ssa(unit, ssa_file)

    with _stage("failed to generate assembly"):
        generate_assembly(src_file, unit, asm_file)

    with _stage("failed to compile assembly"):
        compile_program(asm_file, bin_file, run)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Compile the given source file; return the process exit status."""
    args = _build_parser().parse_args(argv)

    if args.help:
        _print_help()
        return 0

    src_file = args.source
    if not os.path.exists(src_file):
        print(f"Source file {src_file} does not exist.")
        return 1

    try:
        _build(src_file, args.tok, args.ssa, args.run)
    except _StageError as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())