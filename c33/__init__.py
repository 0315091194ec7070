"""A small compiler for a toy language: tokenizer, parser, type checker and QBE SSA output."""

__version__ = "0.1.0"

__all__ = [
    "attributes",
    "cli",
    "generator",
    "parser",
    "scanner",
    "ssa",
    "tokenizer",
    "tree",
    "typecheck",
]