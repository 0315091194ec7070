import pytest

from c33.parser import Parser
from c33.scanner import Scanner
from c33.tokenizer import Tokenizer
from c33.tree import (
    AbiTy,
    Add,
    Arg,
    BaseTy,
    Block,
    Call,
    CompilationUnit,
    FuncDef,
    FuncSig,
    Param,
    ParamType,
    Ret,
    TypeKind,
    Val,
    ValType,
)
from c33.typecheck import TypeCheckError, check


def make_fn(name, *instructions, params=(), return_type=TypeKind.VOID, local_types=None):
    block = Block("start", list(instructions), dict(local_types or {}))
    return FuncDef(name, params=list(params), blocks=[block], return_type=return_type)


def int_param(name):
    return Param(ParamType.REGULAR, abi_ty=AbiTy.of_base(BaseTy.WORD), ident=name, ty=TypeKind.INT)


def unknown_ident(name):
    return Val(ValType.IDENT, ident=name, ty=TypeKind.UNKNOWN)


def word_arg(val):
    return Arg.regular(AbiTy.of_base(BaseTy.WORD), val)


def parse(source):
    tokens = Tokenizer(Scanner("test.in", source.encode())).tokens()
    return Parser(tokens).parse()


def test_add_resolves_operand_from_params_and_sets_result_type():
    add = Add(unknown_ident("x"), unknown_ident("a"), Val.of_integer(1))
    fn = make_fn("f", add, Ret(), params=[int_param("a")])
    unit = CompilationUnit(func_defs=[fn], func_sigs={"f": FuncSig([TypeKind.INT], TypeKind.VOID)})

    check(unit)

    assert add.lhs.ty == TypeKind.INT
    assert add.ret.ty == TypeKind.INT


def test_call_argument_resolved_from_block_locals():
    arg = word_arg(unknown_ident("local_0"))
    call = Call(Val.of_global("g"), [arg])
    fn = make_fn("f", call, Ret(), local_types={"local_0": TypeKind.INT})
    unit = CompilationUnit(
        func_defs=[fn],
        func_sigs={"g": FuncSig([TypeKind.INT], TypeKind.VOID), "f": FuncSig([], TypeKind.VOID)},
    )

    check(unit)

    assert arg.val.ty == TypeKind.INT


def test_return_type_mismatch_message():
    bad = Val.of_integer(0)
    bad.ty = TypeKind.STRING
    fn = make_fn("f", Ret(bad), return_type=TypeKind.INT)
    unit = CompilationUnit(func_defs=[fn])

    with pytest.raises(TypeCheckError) as info:
        check(unit)

    assert str(info.value) == "type error: return type mismatch in function 'f': got string, want int"


def test_missing_return_value_in_non_void_function():
    fn = make_fn("f", Ret(), return_type=TypeKind.INT)
    with pytest.raises(TypeCheckError, match="missing return value in function 'f'"):
        check(CompilationUnit(func_defs=[fn]))


def test_call_to_unknown_function():
    fn = make_fn("f", Call(Val.of_global("nowhere"), []), Ret())
    with pytest.raises(TypeCheckError, match="call to unknown function 'nowhere' in 'f'"):
        check(CompilationUnit(func_defs=[fn]))


def test_argument_count_mismatch():
    fn = make_fn("f", Call(Val.of_global("g"), [word_arg(Val.of_integer(1))]), Ret())
    unit = CompilationUnit(func_defs=[fn], func_sigs={"g": FuncSig([], TypeKind.VOID)})
    with pytest.raises(TypeCheckError, match="argument count mismatch"):
        check(unit)


def test_argument_type_mismatch():
    fn = make_fn("f", Call(Val.of_global("g"), [word_arg(Val.of_integer(1))]), Ret())
    unit = CompilationUnit(func_defs=[fn], func_sigs={"g": FuncSig([TypeKind.STRING], TypeKind.VOID)})
    with pytest.raises(TypeCheckError, match="argument 1 type mismatch"):
        check(unit)


def test_add_with_non_int_operand_fails():
    text = Val.of_global("data_x")
    text.ty = TypeKind.STRING
    fn = make_fn("f", Add(unknown_ident("x"), text, Val.of_integer(1)), Ret())
    with pytest.raises(TypeCheckError, match="operands must be int"):
        check(CompilationUnit(func_defs=[fn]))


def test_errors_carry_type_error_prefix():
    fn = make_fn("f", Ret(), return_type=TypeKind.STRING)
    with pytest.raises(TypeCheckError) as info:
        check(CompilationUnit(func_defs=[fn]))
    assert str(info.value).startswith("type error: ")


def test_parsed_program_with_addition_checks_and_types_adds():
    unit = parse(
        "package main\n"
        "f :: func(n: int) {\n"
        "}\n"
        "main :: func() -> int {\n"
        "  f(1 + 2)\n"
        "  return 0\n"
        "}\n"
    )
    check(unit)
    adds = [i for fn in unit.func_defs for b in fn.blocks for i in b.instructions if isinstance(i, Add)]
    assert adds
    assert all(add.ret.ty == TypeKind.INT for add in adds)


def test_declared_variable_is_not_in_symbol_table():
    unit = parse(
        "package main\n"
        "f :: func(n: int) {\n"
        "}\n"
        "main :: func() {\n"
        "  x := 1\n"
        "  f(x)\n"
        "}\n"
    )
    with pytest.raises(TypeCheckError, match=r"argument 1 type mismatch \(got unknown, want int\)"):
        check(unit)