"""Syntax tree of the intermediate language and the visitor interface over it."""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


class TypeKind(Enum):
    """Basic types of the source language, used for type checking."""

    INT = 0
    STRING = 1
    VOID = 2
    UNKNOWN = 3

    def __str__(self) -> str:
        return self.name.lower()


class Visitor(ABC):
    """Visitor that renders tree nodes to text."""

    @abstractmethod
    def visit_compilation_unit(self, cu: CompilationUnit) -> str: ...

    @abstractmethod
    def visit_type_def(self, td: TypeDef) -> str: ...

    @abstractmethod
    def visit_data_def(self, dd: DataDef) -> str: ...

    @abstractmethod
    def visit_func_def(self, fd: FuncDef) -> str: ...

    @abstractmethod
    def visit_ret(self, r: Ret) -> str: ...

    @abstractmethod
    def visit_call(self, c: Call) -> str: ...

    @abstractmethod
    def visit_add(self, a: Add) -> str: ...


@dataclass
class FuncSig:
    """Parameter types and return type of a function."""

    param_types: list[TypeKind] = field(default_factory=list)
    return_type: TypeKind = TypeKind.VOID


@dataclass
class CompilationUnit:
    """All type, data and function definitions of one source file."""

    types: list[TypeDef] = field(default_factory=list)
    data_defs: list[DataDef] = field(default_factory=list)
    func_defs: list[FuncDef] = field(default_factory=list)
    func_sigs: dict[str, FuncSig] = field(default_factory=dict)

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_compilation_unit(self)

    def with_types(self, *args: TypeDef) -> CompilationUnit:
        self.types.extend(args)
        return self

    def with_data_defs(self, *args: DataDef) -> CompilationUnit:
        self.data_defs.extend(args)
        return self

    def with_func_defs(self, *args: FuncDef) -> CompilationUnit:
        self.func_defs.extend(args)
        return self


class BaseTy(_StrEnum):
    WORD = "w"
    LONG = "l"
    SINGLE = "s"
    DOUBLE = "d"


class ExtTy(_StrEnum):
    BYTE = "b"
    HALF = "h"
    WORD = "w"
    LONG = "l"
    SINGLE = "s"
    DOUBLE = "d"


class SubTyType(_StrEnum):
    EXT = "ext"
    IDENT = "ident"


@dataclass
class SubTy:
    kind: SubTyType
    ext_ty: Optional[ExtTy] = None
    ident: str = ""


@dataclass
class SubTySize:
    sub_ty: SubTy
    size: int = 1

    @classmethod
    def of_ext(cls, ext_ty: ExtTy, size: int) -> SubTySize:
        return cls(SubTy(SubTyType.EXT, ext_ty=ext_ty), size)

    @classmethod
    def of_ident(cls, ident: str, size: int) -> SubTySize:
        return cls(SubTy(SubTyType.IDENT, ident=ident), size)


class ConstType(_StrEnum):
    INTEGER = "integer"
    SINGLE = "single"
    DOUBLE = "double"
    IDENT = "ident"


@dataclass
class Const:
    kind: ConstType
    integer: int = 0
    single: float = 0.0
    double: float = 0.0
    ident: str = ""

    @classmethod
    def of_integer(cls, value: int) -> Const:
        return cls(ConstType.INTEGER, integer=value)

    @classmethod
    def of_single(cls, value: float) -> Const:
        # Single-precision constants keep only float32 precision.
        (rounded,) = struct.unpack("<f", struct.pack("<f", value))
        return cls(ConstType.SINGLE, single=rounded)

    @classmethod
    def of_double(cls, value: float) -> Const:
        return cls(ConstType.DOUBLE, double=value)

    @classmethod
    def of_ident(cls, ident: str) -> Const:
        return cls(ConstType.IDENT, ident=ident)


class DynConstType(_StrEnum):
    CONST = "const"
    THREAD = "thread"


@dataclass
class DynConst:
    kind: DynConstType
    const: Optional[Const] = None
    ident: str = ""

    @classmethod
    def of_const(cls, const: Const) -> DynConst:
        return cls(DynConstType.CONST, const=const)

    @classmethod
    def of_thread(cls, ident: str) -> DynConst:
        return cls(DynConstType.THREAD, ident=ident)


class ValType(_StrEnum):
    DYN_CONST = "dynconst"
    IDENT = "ident"


@dataclass
class Val:
    """A value operand; ``ty`` carries its source type for checking."""

    kind: ValType
    dyn_const: Optional[DynConst] = None
    ident: str = ""
    # Values start out as int unless a later phase says otherwise.
    ty: TypeKind = TypeKind.INT

    @classmethod
    def of_dyn_const(cls, dyn_const: DynConst) -> Val:
        return cls(ValType.DYN_CONST, dyn_const=dyn_const)

    @classmethod
    def of_global(cls, ident: str) -> Val:
        return cls(ValType.DYN_CONST, dyn_const=DynConst.of_const(Const.of_ident(ident)), ident=ident)

    @classmethod
    def of_integer(cls, value: int) -> Val:
        return cls.of_dyn_const(DynConst.of_const(Const.of_integer(value)))

    @classmethod
    def of_ident(cls, ident: str) -> Val:
        return cls(ValType.IDENT, ident=ident)


class LinkageType(_StrEnum):
    EXPORT = "export"
    THREAD = "thread"
    SECTION = "section"


@dataclass
class Linkage:
    kind: LinkageType
    sec_name: str = ""
    sec_flags: str = ""

    @classmethod
    def export(cls) -> Linkage:
        return cls(LinkageType.EXPORT)

    @classmethod
    def thread(cls) -> Linkage:
        return cls(LinkageType.THREAD)

    @classmethod
    def section(cls, sec_name: str, sec_flags: str = "") -> Linkage:
        return cls(LinkageType.SECTION, sec_name=sec_name, sec_flags=sec_flags)


class TypeDefType(_StrEnum):
    REGULAR = "regular"
    UNION = "union"
    OPAQUE = "opaque"


@dataclass
class TypeDef:
    kind: TypeDefType
    ident: str
    align: int = 0
    fields: list[SubTySize] = field(default_factory=list)
    union_fields: list[list[SubTySize]] = field(default_factory=list)
    opaque_size: int = 0

    @classmethod
    def regular(cls, ident: str, *args: SubTySize) -> TypeDef:
        return cls(TypeDefType.REGULAR, ident, fields=list(args))

    @classmethod
    def union(cls, ident: str, *args: list[SubTySize]) -> TypeDef:
        return cls(TypeDefType.UNION, ident, union_fields=[list(group) for group in args])

    @classmethod
    def opaque(cls, ident: str, opaque_size: int) -> TypeDef:
        return cls(TypeDefType.OPAQUE, ident, opaque_size=opaque_size)

    def with_align(self, align: int) -> TypeDef:
        return replace(self, align=align)

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_type_def(self)


class DataInitType(_StrEnum):
    EXT = "ext"
    ZERO = "zero"


class DataItemType(_StrEnum):
    SYMBOL = "symbol"
    STRING = "string"
    CONST = "const"


@dataclass
class DataItem:
    kind: DataItemType
    ident: str = ""
    offset: int = 0
    string_val: str = ""
    const: Optional[Const] = None

    @classmethod
    def of_const(cls, const: Const) -> DataItem:
        return cls(DataItemType.CONST, const=const)

    @classmethod
    def of_string(cls, value: str) -> DataItem:
        return cls(DataItemType.STRING, string_val=value)

    @classmethod
    def of_integer(cls, value: int) -> DataItem:
        return cls.of_const(Const.of_integer(value))

    @classmethod
    def of_symbol(cls, ident: str, offset: int = 0) -> DataItem:
        return cls(DataItemType.SYMBOL, ident=ident, offset=offset)


@dataclass
class DataInit:
    kind: DataInitType
    ext_ty: Optional[ExtTy] = None
    items: list[DataItem] = field(default_factory=list)
    size: int = 0

    @classmethod
    def ext(cls, ext_ty: ExtTy, *args: DataItem) -> DataInit:
        return cls(DataInitType.EXT, ext_ty=ext_ty, items=list(args))

    @classmethod
    def string(cls, value: str) -> DataInit:
        return cls(DataInitType.EXT, ext_ty=ExtTy.BYTE, items=[DataItem.of_string(value)])

    @classmethod
    def zero(cls, size: int) -> DataInit:
        return cls(DataInitType.ZERO, size=size)


@dataclass
class DataDef:
    ident: str
    initializer: list[DataInit] = field(default_factory=list)
    linkage: Optional[Linkage] = None
    align: int = 0

    @classmethod
    def string_z(cls, ident: str, value: str) -> DataDef:
        """A zero-terminated byte string."""
        return cls(ident, [DataInit.string(value), DataInit.ext(ExtTy.BYTE, DataItem.of_integer(0))])

    def with_linkage(self, linkage: Linkage) -> DataDef:
        return replace(self, linkage=linkage)

    def with_align(self, align: int) -> DataDef:
        return replace(self, align=align)

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_data_def(self)


class AbiTyType(_StrEnum):
    BASE = "base"
    SUBW = "subw"
    IDENT = "ident"


class SubWTy(_StrEnum):
    SB = "sb"
    UB = "ub"
    SH = "sh"
    UH = "uh"


@dataclass
class AbiTy:
    kind: AbiTyType
    base_ty: Optional[BaseTy] = None
    sub_w_ty: Optional[SubWTy] = None
    ident: str = ""

    @classmethod
    def of_base(cls, base_ty: BaseTy) -> AbiTy:
        return cls(AbiTyType.BASE, base_ty=base_ty)

    @classmethod
    def of_subw(cls, sub_w_ty: SubWTy) -> AbiTy:
        return cls(AbiTyType.SUBW, sub_w_ty=sub_w_ty)

    @classmethod
    def of_ident(cls, ident: str) -> AbiTy:
        return cls(AbiTyType.IDENT, ident=ident)


class ParamType(_StrEnum):
    REGULAR = "regular"
    ENV = "env"
    VARIADIC = "variadic"


@dataclass
class Param:
    kind: ParamType
    abi_ty: Optional[AbiTy] = None
    ident: str = ""
    ty: TypeKind = TypeKind.INT

    @classmethod
    def regular(cls, abi_ty: AbiTy, ident: str) -> Param:
        return cls(ParamType.REGULAR, abi_ty=abi_ty, ident=ident)

    @classmethod
    def env(cls, ident: str) -> Param:
        return cls(ParamType.ENV, ident=ident)

    @classmethod
    def variadic(cls) -> Param:
        return cls(ParamType.VARIADIC)


class Instruction(ABC):
    """An instruction inside a block."""

    @abstractmethod
    def accept(self, visitor: Visitor) -> str: ...


@dataclass
class Block:
    label: str = ""
    instructions: list[Instruction] = field(default_factory=list)
    locals: dict[str, TypeKind] = field(default_factory=dict)


@dataclass
class FuncDef:
    ident: str
    params: list[Param] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)
    linkage: Optional[Linkage] = None
    ret_ty: Optional[AbiTy] = None
    return_type: TypeKind = TypeKind.INT

    def with_linkage(self, linkage: Linkage) -> FuncDef:
        return replace(self, linkage=linkage)

    def with_ret_ty(self, ret_ty: AbiTy) -> FuncDef:
        return replace(self, ret_ty=ret_ty)

    def with_blocks(self, *args: Block) -> FuncDef:
        return replace(self, blocks=[*self.blocks, *args])

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_func_def(self)


@dataclass
class Ret(Instruction):
    """Return, with or without a value."""

    val: Optional[Val] = None

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_ret(self)


class ArgType(_StrEnum):
    REGULAR = "regular"
    ENV = "env"
    VARIADIC = "variadic"


@dataclass
class Arg:
    kind: ArgType
    abi_ty: Optional[AbiTy] = None
    val: Optional[Val] = None

    @classmethod
    def regular(cls, abi_ty: AbiTy, val: Val) -> Arg:
        return cls(ArgType.REGULAR, abi_ty=abi_ty, val=val)

    @classmethod
    def env(cls, val: Val) -> Arg:
        return cls(ArgType.ENV, val=val)

    @classmethod
    def variadic(cls) -> Arg:
        return cls(ArgType.VARIADIC)


@dataclass
class Call(Instruction):
    """Call of a function value, optionally binding its result."""

    val: Val
    args: list[Arg] = field(default_factory=list)
    lhs: Optional[str] = None
    ret_ty: Optional[AbiTy] = None

    def with_ret(self, lhs: str, ret_ty: AbiTy) -> Call:
        return replace(self, lhs=lhs, ret_ty=ret_ty)

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_call(self)


@dataclass
class Add(Instruction):
    """Word addition: ``ret = lhs + rhs``."""

    ret: Val
    lhs: Val
    rhs: Val

    def accept(self, visitor: Visitor) -> str:
        return visitor.visit_add(self)