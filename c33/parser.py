"""Parsing of a token stream into a compilation unit."""

from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from c33.attributes import AttrKey, AttrValue, parse_attr_key
from c33.tokenizer import Keyword, Token, TokenType
from c33.tree import (
    AbiTy,
    Add,
    Arg,
    BaseTy,
    Block,
    Call,
    CompilationUnit,
    DataDef,
    FuncDef,
    FuncSig,
    Linkage,
    Param,
    ParamType,
    Ret,
    TypeKind,
    Val,
)

_TYPE_KINDS = {
    Keyword.INT: TypeKind.INT,
    Keyword.STRING: TypeKind.STRING,
    Keyword.VOID: TypeKind.VOID,
}

_PARAM_ABI = {
    Keyword.INT: BaseTy.WORD,
    Keyword.STRING: BaseTy.LONG,
}


class ParseError(Exception):
    """Raised when the tokens do not form a valid program."""


class Parser:
    """Builds a compilation unit from a list of tokens.

    Running out of tokens ends parsing: whatever has been parsed so far
    is returned.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens = list(tokens)
        self._index = 0
        self.unit = CompilationUnit()
        self.package_name = ""
        self._blocks: list[Block] = []
        self._attributes: dict[AttrKey, AttrValue] = {}
        self._local_id = 0

    def parse(self) -> CompilationUnit:
        """Parse all declarations; raise ParseError on invalid input."""
        try:
            while True:
                self._parse_declaration()
        except EOFError:
            return self.unit

    def _parse_declaration(self) -> None:
        start = self._expect(TokenType.KEYWORD, TokenType.IDENT, TokenType.AT)

        if start.kind == TokenType.AT:
            self._parse_attributes()
        elif start.kind == TokenType.KEYWORD:
            if start.keyword != Keyword.PACKAGE:
                raise ParseError(
                    f"expected package keyword at {start.location}, got {start.string_val}"
                )
            self._parse_package()
        else:
            if not self.package_name:
                raise ParseError(
                    f"package must be defined before any other declarations at {start.location}"
                )
            self._expect(TokenType.COLON)
            self._expect(TokenType.COLON)
            self._expect_keyword(Keyword.FUNC)
            self._parse_func(start)

    def _parse_package(self) -> None:
        if self.package_name:
            raise ParseError(
                f"package already defined at {self._tokens[self._index - 1].location}, "
                "cannot redefine"
            )
        self.package_name = self._expect(TokenType.IDENT).string_val

    def _parse_attributes(self) -> None:
        self._expect(TokenType.LPAREN)

        while True:
            tok = self._expect(TokenType.RPAREN, TokenType.IDENT)
            if tok.kind == TokenType.RPAREN:
                return

            try:
                key = parse_attr_key(tok.string_val)
            except ValueError as exc:
                raise ParseError(str(exc)) from None

            value: AttrValue = None
            following = self._expect(TokenType.EQUALS, TokenType.COMMA, TokenType.RPAREN)
            if following.kind == TokenType.EQUALS:
                value_tok = self._expect(TokenType.STRING, TokenType.NUMBER)
                if value_tok.kind == TokenType.STRING:
                    value = value_tok.string_val
                else:
                    value = value_tok.number_val
                following = self._expect(TokenType.COMMA, TokenType.RPAREN)

            self._attributes[key] = value

            if following.kind == TokenType.RPAREN:
                return

    def _parse_func(self, name: Token) -> None:
        try:
            self._parse_func_inner(name)
        finally:
            self._attributes.clear()

    def _parse_func_inner(self, name: Token) -> None:
        self._expect(TokenType.LPAREN)

        params: list[Param] = []
        while True:
            arg = self._expect(TokenType.RPAREN, TokenType.IDENT)
            if arg.kind == TokenType.RPAREN:
                break

            self._expect(TokenType.COLON)
            arg_type = self._expect_keyword(Keyword.INT, Keyword.STRING)
            params.append(
                Param(
                    ParamType.REGULAR,
                    abi_ty=AbiTy.of_base(_PARAM_ABI[arg_type.keyword]),
                    ident=arg.string_val,
                    ty=_TYPE_KINDS[arg_type.keyword],
                )
            )

            if self._expect(TokenType.COMMA, TokenType.RPAREN).kind == TokenType.RPAREN:
                break

        ret_keyword = Keyword.VOID
        if self._peek(TokenType.ARROW).kind == TokenType.ARROW:
            ret_keyword = self._expect_keyword(Keyword.INT, Keyword.STRING, Keyword.VOID).keyword
        return_type = _TYPE_KINDS[ret_keyword]

        self.unit.func_sigs[name.string_val] = FuncSig(
            param_types=[param.ty for param in params],
            return_type=return_type,
        )

        if AttrKey.EXTERN in self._attributes:
            return

        self._expect(TokenType.LBRACE)
        self._parse_body(ret_keyword)
        self._expect(TokenType.RBRACE)

        fn = FuncDef(name.string_val, params=params, blocks=list(self._blocks), return_type=return_type)
        if AttrKey.EXPORT in self._attributes:
            fn = fn.with_linkage(Linkage.export())
        if ret_keyword == Keyword.INT:
            fn = fn.with_ret_ty(AbiTy.of_base(BaseTy.WORD))

        self.unit.with_func_defs(fn)

    def _parse_body(self, ret_keyword: Keyword) -> None:
        block = Block(label="start")

        while True:
            first = self._next_token()

            if first.kind == TokenType.RBRACE:
                self._index -= 1
                instructions = block.instructions
                if not instructions or not isinstance(instructions[-1], Ret):
                    if ret_keyword != Keyword.VOID:
                        raise ParseError(f"expected return statement at {first.location}")
                    instructions.append(Ret())
                self._blocks = [block]
                return

            if first.kind == TokenType.KEYWORD:
                if first.keyword == Keyword.RETURN:
                    block.instructions.append(self._parse_return(ret_keyword))
            elif first.kind == TokenType.IDENT:
                token = self._next_token()
                if token.kind == TokenType.LPAREN:
                    self._parse_call(first, block)
                elif token.kind == TokenType.COLON:
                    self._parse_decl(first, block)
                else:
                    raise ParseError(
                        f"expected ( after identifier at {token.location}, got {token.string_val}"
                    )

    def _parse_return(self, ret_keyword: Keyword) -> Ret:
        if ret_keyword == Keyword.VOID:
            return Ret()

        ret = self._expect(TokenType.STRING, TokenType.NUMBER, TokenType.IDENT)
        if ret.kind != TokenType.NUMBER:
            raise ParseError(
                f"unexpected return type {ret.kind} at {ret.location}, expected number"
            )
        if ret_keyword != Keyword.INT:
            raise ParseError(
                f"unexpected return type {ret.kind} at {ret.location}, expected {ret_keyword}"
            )

        val = replace(Val.of_integer(ret.number_val), ty=TypeKind.INT)
        return Ret(val)

    def _parse_decl(self, name: Token, block: Block) -> None:
        declared = TypeKind.UNKNOWN

        if self._peek(TokenType.EQUALS, TokenType.KEYWORD).kind != TokenType.EQUALS:
            self._index -= 1
            ty = self._expect_keyword(Keyword.INT, Keyword.STRING)
            self._expect(TokenType.EQUALS)
            declared = _TYPE_KINDS[ty.keyword]

        value = self._expect(TokenType.NUMBER, TokenType.IDENT)
        if value.kind == TokenType.NUMBER:
            val = replace(self._parse_val(Val.of_integer(value.number_val), block), ty=TypeKind.INT)
        else:
            val = replace(self._parse_val(Val.of_ident(value.string_val), block), ty=TypeKind.UNKNOWN)

        if declared != TypeKind.UNKNOWN and val.ty != declared:
            raise ParseError(
                f"type mismatch for variable {name.string_val} at {name.location}: "
                f"got {val.ty}, want {declared}"
            )

        block.instructions.append(Add(Val.of_ident(name.string_val), Val.of_integer(0), val))

    def _parse_call(self, first: Token, block: Block) -> None:
        args: list[Arg] = []
        arg = self._next_token()

        while arg.kind != TokenType.RPAREN:
            if arg.kind == TokenType.STRING:
                data_id = f"data_{first.string_val}{len(args)}"
                self.unit.with_data_defs(DataDef.string_z(data_id, arg.string_val))
                val = replace(Val.of_global(data_id), ty=TypeKind.STRING)
                args.append(Arg.regular(AbiTy.of_base(BaseTy.LONG), val))
            elif arg.kind == TokenType.NUMBER:
                val = replace(self._parse_val(Val.of_integer(arg.number_val), block), ty=TypeKind.INT)
                args.append(Arg.regular(AbiTy.of_base(BaseTy.WORD), val))
            elif arg.kind == TokenType.IDENT:
                val = replace(self._parse_val(Val.of_ident(arg.string_val), block), ty=TypeKind.UNKNOWN)
                args.append(Arg.regular(AbiTy.of_base(BaseTy.WORD), val))
            else:
                raise ParseError(
                    f"unexpected argument type {arg.kind} at {arg.location}, "
                    "expected string or number"
                )

            arg = self._expect(TokenType.RPAREN, TokenType.COMMA)
            if arg.kind == TokenType.COMMA:
                arg = self._next_token()

        block.instructions.append(Call(Val.of_global(first.string_val), args))

    def _parse_val(self, lhs: Val, block: Block) -> Val:
        if self._peek(TokenType.PLUS).kind != TokenType.PLUS:
            return lhs

        rhs_tok = self._expect(TokenType.NUMBER)
        ret = Val.of_ident(f"local_{self._local_id}")
        self._local_id += 1
        block.instructions.append(Add(ret, lhs, Val.of_integer(rhs_tok.number_val)))
        block.locals[ret.ident] = TypeKind.INT
        return replace(ret)

    def _expect_keyword(self, *keywords: Keyword) -> Token:
        token = self._expect(TokenType.KEYWORD)
        if token.keyword in keywords:
            return token
        names = " or ".join(str(kw) for kw in keywords)
        raise ParseError(f"expected {names} at {token.location}, got {token.keyword}")

    def _peek(self, *kinds: TokenType) -> Token:
        token = self._next_token()
        if token.kind not in kinds:
            self._index -= 1
        return token

    def _expect(self, *kinds: TokenType) -> Token:
        token = self._next_token()
        if token.kind in kinds:
            return token
        names = " or ".join(str(kind) for kind in kinds)
        raise ParseError(f"expected {names} at {token.location}, got {token.kind}")

    def _next_token(self) -> Token:
        if self._index >= len(self._tokens):
            raise EOFError
        token = self._tokens[self._index]
        self._index += 1
        return token