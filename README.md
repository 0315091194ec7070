# c33

`c33` is a small compiler for a toy language. It reads a source file,
tokenizes it, parses it into an intermediate tree, type-checks it and emits
QBE SSA text. The SSA is turned into assembly by running the `qbe` command
and then linked into a native executable with the system C compiler (`cc`).

## Installation

```
pip install .
```

Producing assembly and executables needs the `qbe` and `cc` commands on your
`PATH`. Tokenizing, parsing, type checking and SSA generation work without
them.

## The language

A program starts with a `package` declaration, followed by functions.
Functions are declared as `name :: func(params) -> type { ... }`. Parameters
are `int` or `string`; the return type is `int`, `string` or `void`, and a
function without `->` returns `void`. Attributes in front of a function
change how it is emitted:

- `@(extern)` declares a function defined elsewhere: it has no body and only
  its signature is recorded for type checking;
- `@(export)` gives the function `export` linkage.

```
package main

@(extern)
printf :: func(fmt: string, value: int) -> int

@(export)
main :: func() -> int {
    printf("answer: %d\n", 40 + 2)
    return 0
}
```

Inside a body you can call functions with string, integer or parameter
arguments, add an integer with `+`, write `name := value` or
`name : int = value`, and `return`. A `return` in an `int` function takes an
integer literal. A `void` function gets an implicit `ret` if its body does
not end in one; other functions must end in a `return`. Comments start with
`//` and run to the end of the line.

### Limitations

- Names declared with `:=` or `: int =` are not recorded for type checking,
  so passing them to a call fails the type check.
- `return` accepts only integer literals; returning strings or names is
  rejected by the parser.
- Each function body is a single block; there are no branches or loops.

## Command line

```
c33 hello.in
```

compiles `hello.in` (or `example.in` when no file is given). All output goes
into an `out/` directory next to the source file:

- `out/hello.s`: generated assembly;
- `out/hello`: the linked executable.

Options (each may be written with one dash or two):

- `--tok` also writes the token stream to `out/hello.tok`;
- `--ssa` also writes the SSA text to `out/hello.ssa`;
- `--run` runs the compiled program and prints its output;
- `--help` shows the usage message.

If the source file does not exist, or any stage fails, a message is printed
and the command exits with status 1.

## Using it as a library

The stages are available as separate modules:

```python
from c33.scanner import Scanner
from c33.tokenizer import Tokenizer
from c33.parser import Parser
from c33.typecheck import check
from c33.ssa import SsaGen

with open("hello.in", "rb") as stream:
    scanner = Scanner.from_stream("hello.in", stream)

tokens = Tokenizer(scanner).tokens()
unit = Parser(tokens).parse()
check(unit)
print(unit.accept(SsaGen()))
```

Errors are raised as `ParseError` (`c33.parser`), `TypeCheckError`
(`c33.typecheck`) and `CodegenError` (`c33.generator`).

`c33.tree` holds the tree the SSA is generated from; it can also be built by
hand, for example with `CompilationUnit.with_func_defs`, `FuncDef.with_blocks`
and `DataDef.string_z`. `c33.generator` offers `write_ssa`,
`generate_assembly` and `compile_program` for the later stages, and
`c33.attributes` the `AttrKey` enum with `parse_attr_key`.

## Running the tests

```
pip install .[test]
pytest
```