"""Abstract syntax tree of deflang expressions and the precedence-climbing parser that builds it.

```
<sum>     ::= <product> ("+" <product>)*     ; left-associative: a+b+c = ((a+b)+c)
<product> ::= <atom> ("*" <atom>)*           ; binds tighter than "+"
<atom>    ::= <number> | <param> | <call>
<call>    ::= <FUNC> "(" (<sum> (" " <sum>)*)? ")"
```

Nodes are frozen and compare by identity, not by value: two textually identical call sites are still two different
calls, which is what the evaluator's recursion guard relies on.
"""

from dataclasses import dataclass

from deflang.lang.error import ParseError
from deflang.pure.lexical import TK


class Expression:
    """Superclass of every AST node. Subclasses carry the line and col they were parsed at."""
    __slots__ = ()


@dataclass(frozen=True, eq=False)
class Number(Expression):
    value: int
    line: int = 0
    col: int = 0


@dataclass(frozen=True, eq=False)
class Parameter(Expression):
    name: str
    line: int = 0
    col: int = 0


@dataclass(frozen=True, eq=False)
class Call(Expression):
    name: str
    arguments: tuple = ()
    line: int = 0
    col: int = 0


@dataclass(frozen=True, eq=False)
class Sum(Expression):
    left: Expression
    right: Expression
    line: int = 0
    col: int = 0


@dataclass(frozen=True, eq=False)
class Product(Expression):
    left: Expression
    right: Expression
    line: int = 0
    col: int = 0


PRECEDENCE = {Sum: 1, Product: 2}
OPERATORS = {Sum: "+", Product: "*"}


def operands(node):
    """Operands of the left-leaning chain of node's type, in source order: a+b+c gives [a, b, c]. The chain is
    walked without recursing.
    """
    kind = type(node)
    rights = []
    while type(node) is kind:
        rights.append(node.right)
        node = node.left
    rights.append(node)
    rights.reverse()
    return rights


def render(node):
    """Canonical text of node. Parsed trees never need parentheses, but hand-built ones may: a right operand of equal
    or lower precedence (and a left operand of lower precedence) is wrapped in them.
    """
    if isinstance(node, Number):
        return str(node.value)
    elif isinstance(node, Parameter):
        return node.name
    elif isinstance(node, Call):
        return f"{node.name}({' '.join(render(argument) for argument in node.arguments)})"
    elif isinstance(node, (Sum, Product)):
        precedence = PRECEDENCE[type(node)]
        first, *rest = operands(node)

        text = render(first)
        if PRECEDENCE.get(type(first), 3) < precedence:
            text = f"({text})"

        for operand in rest:
            right = render(operand)
            if PRECEDENCE.get(type(operand), 3) <= precedence:
                right = f"({right})"
            text += OPERATORS[type(node)] + right

        return text
    raise TypeError(f"not a deflang expression: {node!r}")


def shape(node):
    """Tree structure of node, e.g. 'Sum(Sum(10,2),3)'. Used for debugging and by the shell's tree command."""
    if isinstance(node, Number):
        return str(node.value)
    elif isinstance(node, Parameter):
        return node.name
    elif isinstance(node, Call):
        return f"Call({','.join([node.name] + [shape(argument) for argument in node.arguments])})"
    elif isinstance(node, (Sum, Product)):
        name = type(node).__name__
        first, *rest = operands(node)

        text = shape(first)
        for operand in rest:
            text = f"{name}({text},{shape(operand)})"
        return text
    raise TypeError(f"not a deflang expression: {node!r}")


class ExpressionParser:
    """Recursive-descent parser over a Lexer with one token of lookahead. Every Call it builds is appended to calls,
    the registry whole-program validation walks once parsing is done.
    """

    def __init__(self, lexer, calls, max_arguments=1):
        self.lexer = lexer
        self.calls = calls
        self.max_arguments = max_arguments

        self.token = self.lexer.next_token()

    def advance(self):
        """Consumes and returns the current token."""
        token = self.token
        self.token = self.lexer.next_token()
        return token

    def error(self, expected):
        """Raises a ParseError for the current token."""
        token = self.token
        raise ParseError("expected {}, got {}", (expected, str(token)), line=token.line, col=token.col,
                         length=max(len(token.text.rstrip()), 1))

    def expect(self, kind, expected):
        """Consumes the current token if it is of kind, else raises a ParseError describing it as expected."""
        if self.token.kind != kind:
            self.error(expected)
        return self.advance()

    def parse_sum(self, scope):
        """Parses a <sum>. scope is the set of parameter names the enclosing definition declares."""
        node = self.parse_product(scope)
        while self.token.kind == TK.PLUS:
            self.advance()
            node = Sum(node, self.parse_product(scope), node.line, node.col)
        return node

    def parse_product(self, scope):
        node = self.parse_atom(scope)
        while self.token.kind == TK.TIMES:
            self.advance()
            node = Product(node, self.parse_atom(scope), node.line, node.col)
        return node

    def parse_atom(self, scope):
        token = self.token

        if token.kind == TK.NUMBER:
            self.advance()
            return Number(int(token.text), token.line, token.col)

        elif token.kind == TK.PARAM:
            if token.text not in scope:
                raise ParseError("unknown parameter '{}'", token.text, line=token.line, col=token.col)
            self.advance()
            return Parameter(token.text, token.line, token.col)

        elif token.kind in (TK.FUNC, TK.MAIN):
            return self.parse_call(scope)

        self.error("a number, parameter or call")

    def parse_call(self, scope):
        name = self.advance()
        self.expect(TK.LPAREN, "'('")

        arguments = []
        if self.token.kind != TK.RPAREN:
            arguments.append(self._parse_argument(name, len(arguments), scope))
            while self.token.kind == TK.SPACE:
                self.advance()
                arguments.append(self._parse_argument(name, len(arguments), scope))

        self.expect(TK.RPAREN, "')'")

        call = Call(name.text, tuple(arguments), name.line, name.col)
        self.calls.append(call)
        return call

    def _parse_argument(self, name, count, scope):
        """Parses the argument after the count already parsed, enforcing max_arguments."""
        if count >= self.max_arguments:
            token = self.token
            msg = "too many parameters in call to '{}' (at most {} allowed)"
            raise ParseError(msg, (name.text, self.max_arguments), line=token.line, col=token.col,
                             length=max(len(token.text), 1))
        return self.parse_sum(scope)
