import pytest

from c33.parser import ParseError, Parser
from c33.scanner import Scanner
from c33.ssa import SsaGen
from c33.tokenizer import Tokenizer
from c33.tree import (
    Add,
    BaseTy,
    Call,
    FuncSig,
    LinkageType,
    Ret,
    TypeKind,
)


def parse(src: str):
    tokens = Tokenizer(Scanner("test.in", src.encode("utf-8"))).tokens()
    return Parser(tokens).parse()


HELLO = r'''package main

@(extern)
printf :: func(fmt: string, n: int) -> int

@(export)
main :: func() -> int {
    printf("hi %d\n", 33)
    return 0
}
'''


def test_hello_program_structure():
    unit = parse(HELLO)
    assert unit.func_sigs["printf"] == FuncSig([TypeKind.STRING, TypeKind.INT], TypeKind.INT)
    assert unit.func_sigs["main"] == FuncSig([], TypeKind.INT)
    assert [fd.ident for fd in unit.func_defs] == ["main"]
    main = unit.func_defs[0]
    assert main.linkage.kind == LinkageType.EXPORT
    assert main.ret_ty.base_ty == BaseTy.WORD
    assert main.return_type == TypeKind.INT
    assert [dd.ident for dd in unit.data_defs] == ["data_printf0"]


def test_hello_program_renders_ssa():
    unit = parse(HELLO)
    expected = (
        "export function w $main() {\n@start\n"
        "\tcall $printf(l $data_printf0, w 33)\n"
        "\tret 0\n}\n"
        r'data $data_printf0 = { b "hi %d\n", b 0 }' "\n"
    )
    assert unit.accept(SsaGen()) == expected


def test_empty_input_gives_empty_unit():
    unit = Parser([]).parse()
    assert unit.func_defs == []
    assert unit.data_defs == []
    assert unit.func_sigs == {}


def test_void_function_gets_implicit_return():
    unit = parse("package p\nf :: func() {\n}\n")
    fn = unit.func_defs[0]
    assert fn.blocks[0].label == "start"
    assert fn.blocks[0].instructions == [Ret()]
    assert fn.return_type == TypeKind.VOID
    assert fn.ret_ty is None
    assert fn.linkage is None


def test_parameters_are_typed():
    unit = parse("package p\nf :: func(a: int, s: string) {\n}\n")
    params = unit.func_defs[0].params
    assert [p.ident for p in params] == ["a", "s"]
    assert [p.ty for p in params] == [TypeKind.INT, TypeKind.STRING]
    assert [p.abi_ty.base_ty for p in params] == [BaseTy.WORD, BaseTy.LONG]
    assert unit.func_sigs["f"].param_types == [TypeKind.INT, TypeKind.STRING]


def test_missing_return_in_int_function():
    with pytest.raises(ParseError, match="expected return statement"):
        parse("package p\nf :: func() -> int {\n}\n")


def test_number_return_in_string_function():
    with pytest.raises(ParseError, match="unexpected return type Number"):
        parse("package p\nf :: func() -> string {\n    return 5\n}\n")


def test_identifier_before_package():
    with pytest.raises(ParseError, match="package must be defined"):
        parse("f :: func() {\n}\n")


def test_package_redefined():
    with pytest.raises(ParseError, match="package already defined"):
        parse("package a\npackage b\n")


def test_other_keyword_at_top_level():
    with pytest.raises(ParseError, match="expected package keyword"):
        parse("func\n")


def test_invalid_attribute_key():
    with pytest.raises(ParseError, match="invalid attribute key: inline"):
        parse("package p\n@(inline)\nf :: func() {\n}\n")


def test_attributes_apply_to_next_function_only():
    unit = parse("package p\n@(export = 1)\nf :: func() {\n}\ng :: func() {\n}\n")
    f, g = unit.func_defs
    assert f.linkage.kind == LinkageType.EXPORT
    assert g.linkage is None


def test_extern_records_signature_without_body():
    unit = parse('package p\n@(extern, export = "x")\nputs :: func(s: string) -> int\n')
    assert unit.func_defs == []
    assert unit.func_sigs["puts"] == FuncSig([TypeKind.STRING], TypeKind.INT)


def test_declaration_with_addition_creates_local():
    unit = parse("package p\nf :: func() {\n    x := 5 + 1\n}\n")
    block = unit.func_defs[0].blocks[0]
    first, second, last = block.instructions
    assert isinstance(first, Add) and isinstance(second, Add)
    assert first.ret.ident == "local_0"
    assert first.rhs.dyn_const.const.integer == 1
    assert second.ret.ident == "x"
    assert second.rhs.ident == "local_0"
    assert last == Ret()
    assert block.locals == {"local_0": TypeKind.INT}


def test_typed_declaration_of_number():
    unit = parse("package p\nf :: func() {\n    y : int = -3\n}\n")
    add = unit.func_defs[0].blocks[0].instructions[0]
    assert add.ret.ident == "y"
    assert add.lhs.dyn_const.const.integer == 0
    assert add.rhs.dyn_const.const.integer == -3
    assert add.rhs.ty == TypeKind.INT


def test_typed_declaration_of_identifier_mismatches():
    with pytest.raises(ParseError, match="type mismatch for variable y"):
        parse("package p\nf :: func(x: int) {\n    y : int = x\n}\n")


def test_declaration_without_type_or_equals():
    with pytest.raises(ParseError, match="got Colon"):
        parse("package p\nf :: func() {\n    x : 5\n}\n")


def test_call_with_added_identifier_argument():
    unit = parse("package p\nh :: func(a: int) {\n    h(a + 2)\n}\n")
    add, call, ret = unit.func_defs[0].blocks[0].instructions
    assert isinstance(add, Add) and isinstance(call, Call)
    assert add.lhs.ident == "a"
    assert call.val.ident == "h"
    assert call.args[0].val.ident == add.ret.ident
    assert call.args[0].val.ty == TypeKind.UNKNOWN
    assert add.ret.ty == TypeKind.INT
    assert ret == Ret()


def test_call_with_invalid_argument():
    with pytest.raises(ParseError, match="unexpected argument type Arrow"):
        parse("package p\nf :: func() {\n    f(->)\n}\n")


def test_identifier_followed_by_other_token():
    with pytest.raises(ParseError, match=r"expected \( after identifier"):
        parse("package p\nf :: func() {\n    x 5\n}\n")


def test_truncated_input_returns_partial_unit():
    unit = parse("package p\nf :: func(a: int")
    assert unit.func_defs == []
    assert unit.func_sigs == {}