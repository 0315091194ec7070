"""Rendering of the syntax tree as QBE-style SSA text."""

from __future__ import annotations

from c33.tree import (
    AbiTy,
    AbiTyType,
    Add,
    Arg,
    ArgType,
    Block,
    Call,
    CompilationUnit,
    Const,
    ConstType,
    DataDef,
    DataInit,
    DataInitType,
    DataItem,
    DataItemType,
    DynConst,
    DynConstType,
    FuncDef,
    Linkage,
    LinkageType,
    Param,
    ParamType,
    Ret,
    SubTy,
    SubTySize,
    SubTyType,
    TypeDef,
    TypeDefType,
    Val,
    ValType,
    Visitor,
)

_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def _quote(text: str) -> str:
    """Double-quote ``text``, escaping quotes, backslashes and control characters."""
    parts = []
    for ch in text:
        if ch in _ESCAPES:
            parts.append(_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            parts.append(f"\\x{ord(ch):02x}")
        else:
            parts.append(ch)
    return '"' + "".join(parts) + '"'


def _unknown(what: str, kind: object) -> ValueError:
    return ValueError(f"unknown {what}: {kind}")


class SsaGen(Visitor):
    """Visitor that produces SSA source text."""

    def visit_compilation_unit(self, cu: CompilationUnit) -> str:
        parts = [td.accept(self) + "\n" for td in cu.types]
        parts += [fd.accept(self) + "\n" for fd in cu.func_defs]
        parts += [dd.accept(self) + "\n" for dd in cu.data_defs]
        return "".join(parts)

    def visit_type_def(self, td: TypeDef) -> str:
        align = f"align {td.align} " if td.align > 0 else ""
        if td.kind == TypeDefType.REGULAR:
            body = ", ".join(self.visit_sub_ty_size(f) for f in td.fields)
        elif td.kind == TypeDefType.UNION:
            body = ", ".join(
                "{ " + ", ".join(self.visit_sub_ty_size(f) for f in group) + " }"
                for group in td.union_fields
            )
        elif td.kind == TypeDefType.OPAQUE:
            body = str(td.opaque_size)
        else:
            raise _unknown("type definition type", td.kind)
        return f"type :{td.ident} = {align}{{ {body} }}"

    def visit_data_def(self, dd: DataDef) -> str:
        linkage = self.visit_linkage(dd.linkage) + " " if dd.linkage is not None else ""
        align = f"align {dd.align} " if dd.align > 0 else ""
        inits = ", ".join(self.visit_data_init(init) for init in dd.initializer)
        return f"{linkage}data ${dd.ident} = {align}{{ {inits} }}"

    def visit_func_def(self, fd: FuncDef) -> str:
        linkage = self.visit_linkage(fd.linkage) + " " if fd.linkage is not None else ""
        ret_ty = self.visit_abi_ty(fd.ret_ty) + " " if fd.ret_ty is not None else ""
        params = ", ".join(self.visit_param(p) for p in fd.params)
        blocks = "\n".join(self.visit_block(b) for b in fd.blocks)
        return f"{linkage}function {ret_ty}${fd.ident}({params}) {{{blocks}}}"

    def visit_sub_ty_size(self, sts: SubTySize) -> str:
        text = self.visit_sub_ty(sts.sub_ty)
        return f"{text} {sts.size}" if sts.size > 1 else text

    def visit_sub_ty(self, st: SubTy) -> str:
        if st.kind == SubTyType.EXT:
            return str(st.ext_ty)
        if st.kind == SubTyType.IDENT:
            return f":{st.ident}"
        raise _unknown("subtype type", st.kind)

    def visit_linkage(self, linkage: Linkage) -> str:
        if linkage.kind in (LinkageType.EXPORT, LinkageType.THREAD):
            return str(linkage.kind)
        if linkage.kind == LinkageType.SECTION:
            text = f"{linkage.kind} {_quote(linkage.sec_name)}"
            if linkage.sec_flags:
                text += f" {_quote(linkage.sec_flags)}"
            return text
        raise _unknown("linkage type", linkage.kind)

    def visit_data_init(self, di: DataInit) -> str:
        if di.kind == DataInitType.EXT:
            items = " ".join(self.visit_data_item(item) for item in di.items)
            return f"{di.ext_ty} {items}"
        if di.kind == DataInitType.ZERO:
            return f"z {di.size}"
        raise _unknown("data initialization type", di.kind)

    def visit_data_item(self, di: DataItem) -> str:
        if di.kind == DataItemType.SYMBOL:
            return f"${di.ident} + {di.offset}" if di.offset > 0 else f"${di.ident}"
        if di.kind == DataItemType.STRING:
            return f'"{di.string_val}"'
        if di.kind == DataItemType.CONST:
            return self.visit_const(di.const)
        raise _unknown("data item type", di.kind)

    def visit_const(self, c: Const) -> str:
        if c.kind == ConstType.INTEGER:
            return str(c.integer)
        if c.kind == ConstType.SINGLE:
            return f"s_{c.single:f}"
        if c.kind == ConstType.DOUBLE:
            return f"d_{c.double:f}"
        if c.kind == ConstType.IDENT:
            return f"${c.ident}"
        raise _unknown("constant type", c.kind)

    def visit_param(self, p: Param) -> str:
        if p.kind == ParamType.REGULAR:
            return f"{self.visit_abi_ty(p.abi_ty)} %{p.ident}"
        if p.kind == ParamType.ENV:
            return f"env %{p.ident}"
        if p.kind == ParamType.VARIADIC:
            return "..."
        raise _unknown("parameter type", p.kind)

    def visit_abi_ty(self, a: AbiTy) -> str:
        if a.kind == AbiTyType.BASE:
            return str(a.base_ty)
        if a.kind == AbiTyType.SUBW:
            return str(a.sub_w_ty)
        if a.kind == AbiTyType.IDENT:
            return f":{a.ident}"
        raise _unknown("ABI type", a.kind)

    def visit_block(self, b: Block) -> str:
        label = f"@{b.label}\n" if b.label else ""
        instructions = "\n".join("\t" + instr.accept(self) for instr in b.instructions)
        return f"\n{label}{instructions}\n"

    def visit_ret(self, r: Ret) -> str:
        if r.val is None:
            return "ret"
        return f"ret {self.visit_val(r.val)}"

    def visit_call(self, c: Call) -> str:
        lhs = ""
        if c.lhs is not None and c.ret_ty is not None:
            lhs = f"%{c.lhs} = {self.visit_abi_ty(c.ret_ty)} "
        args = ", ".join(self.visit_arg(arg) for arg in c.args)
        return f"{lhs}call {self.visit_val(c.val)}({args})"

    def visit_add(self, a: Add) -> str:
        return f"{self.visit_val(a.ret)} =w add {self.visit_val(a.lhs)}, {self.visit_val(a.rhs)}"

    def visit_val(self, val: Val) -> str:
        if val.kind == ValType.DYN_CONST:
            return self.visit_dyn_const(val.dyn_const)
        if val.kind == ValType.IDENT:
            return f"%{val.ident}"
        raise _unknown("value type", val.kind)

    def visit_dyn_const(self, dc: DynConst) -> str:
        if dc.kind == DynConstType.CONST:
            return self.visit_const(dc.const)
        if dc.kind == DynConstType.THREAD:
            return f"thread ${dc.ident}"
        raise _unknown("dynamic constant type", dc.kind)

    def visit_arg(self, a: Arg) -> str:
        if a.kind == ArgType.REGULAR:
            return f"{self.visit_abi_ty(a.abi_ty)} {self.visit_val(a.val)}"
        if a.kind == ArgType.ENV:
            return f"env {self.visit_val(a.val)}"
        if a.kind == ArgType.VARIADIC:
            return "..."
        raise _unknown("argument type", a.kind)