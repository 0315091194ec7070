"""Type checking of a parsed compilation unit."""

from __future__ import annotations

from typing import Mapping, Optional

from c33.tree import Add, Call, CompilationUnit, FuncDef, FuncSig, Ret, TypeKind, Val


class TypeCheckError(Exception):
    """Raised when a program violates the typing rules."""

    def __init__(self, message: str) -> None:
        super().__init__(f"type error: {message}")


def check(unit: CompilationUnit) -> None:
    """Check every function definition; raise TypeCheckError on the first problem."""
    for fn in unit.func_defs:
        _check_func_def(unit, fn)


def _resolve(val: Val, symbols: Mapping[str, TypeKind]) -> TypeKind:
    """Fill in an unknown type of a named value from the symbol table."""
    if val.ty == TypeKind.UNKNOWN and val.ident:
        known = symbols.get(val.ident)
        if known is not None:
            val.ty = known
    return val.ty


def _signature(unit: CompilationUnit, name: str) -> Optional[FuncSig]:
    return unit.func_sigs.get(name)


def _check_func_def(unit: CompilationUnit, fn: FuncDef) -> None:
    symbols: dict[str, TypeKind] = {param.ident: param.ty for param in fn.params}
    for block in fn.blocks:
        symbols.update(block.locals)

    for block in fn.blocks:
        for instr in block.instructions:
            if isinstance(instr, Ret):
                _check_ret(fn, instr)
            elif isinstance(instr, Call):
                _check_call(unit, fn, instr, symbols)
            elif isinstance(instr, Add):
                _check_add(fn, instr, symbols)


def _check_ret(fn: FuncDef, ret: Ret) -> None:
    if ret.val is not None:
        if ret.val.ty != fn.return_type:
            raise TypeCheckError(
                f"return type mismatch in function '{fn.ident}': "
                f"got {ret.val.ty}, want {fn.return_type}"
            )
    elif fn.return_type != TypeKind.VOID:
        raise TypeCheckError(
            f"missing return value in function '{fn.ident}' with non-void return type"
        )


def _check_call(
    unit: CompilationUnit, fn: FuncDef, call: Call, symbols: Mapping[str, TypeKind]
) -> None:
    callee = call.val.ident
    sig = _signature(unit, callee)
    if sig is None:
        raise TypeCheckError(f"call to unknown function '{callee}' in '{fn.ident}'")
    if len(sig.param_types) != len(call.args):
        raise TypeCheckError(
            f"call to '{callee}' in '{fn.ident}': argument count mismatch "
            f"(got {len(call.args)}, want {len(sig.param_types)})"
        )
    for position, (arg, want) in enumerate(zip(call.args, sig.param_types), start=1):
        got = _resolve(arg.val, symbols) if arg.val is not None else TypeKind.INT
        if got != want:
            raise TypeCheckError(
                f"call to '{callee}' in '{fn.ident}': argument {position} type mismatch "
                f"(got {got}, want {want})"
            )


def _check_add(fn: FuncDef, add: Add, symbols: Mapping[str, TypeKind]) -> None:
    lhs_type = _resolve(add.lhs, symbols)
    rhs_type = _resolve(add.rhs, symbols)
    if lhs_type != TypeKind.INT or rhs_type != TypeKind.INT:
        raise TypeCheckError(
            f"add instruction in function '{fn.ident}': operands must be int "
            f"(got {lhs_type}, {rhs_type})"
        )
    add.ret.ty = TypeKind.INT