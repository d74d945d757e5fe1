"""Function definitions, programs, and the parser that reads a whole deflang source text.

```
<program>    ::= <definition>+
<definition> ::= "DEF " ("MAIN" | <FUNC> (" " <param>)*) " { " <sum> " } ;" <newline>
```

One definition per line. A call may name a function defined further down, so call sites are only checked against the
function table once every definition has been read (Program.validate).
"""

from dataclasses import dataclass

from deflang.lang.error import EvalError, ParseError
from deflang.pure.lexical import ENTRY, TK, Lexer
from deflang.pure.syntax import ExpressionParser, render


@dataclass(frozen=True)
class ParserConfig:
    max_arguments: int = 1  # most arguments a single call site may pass


@dataclass(frozen=True, eq=False)
class FunctionDefinition:
    name: str
    parameters: tuple
    body: object
    line: int

    @property
    def arity(self):
        return len(self.parameters)

    def invoke(self, arguments, context):
        """Evaluates this function's body in context with parameters bound to arguments. If a parameter name is
        declared twice, the later occurrence's argument wins.
        """
        if len(arguments) != self.arity:
            msg = "incorrect number of arguments for '{}': expected {}, got {}"
            raise EvalError(msg, (self.name, self.arity, len(arguments)), diagnosis=False)

        binding = dict(zip(self.parameters, arguments))
        return context.evaluate(self.body, binding)

    def render(self):
        """Canonical debug form: NAME(params):=body."""
        return f"{self.name}({' '.join(self.parameters)}):={render(self.body)}"

    def source(self):
        """Surface syntax of this definition, without the trailing newline."""
        header = " ".join((self.name,) + self.parameters)
        return f"DEF {header} {{ {render(self.body)} }} ;"

    def __str__(self):
        return self.render()


class Program:
    """Function table plus every call site found while parsing. Read-only once validated."""
    ENTRY = ENTRY

    def __init__(self):
        self.functions = {}  # dict of name: FunctionDefinition, later definitions replace earlier ones
        self.calls = []      # every Call node, in parse order
        self.redefined = []  # definitions that replaced an earlier one of the same name

    def define(self, definition):
        if definition.name in self.functions:
            self.redefined.append(definition)
        self.functions[definition.name] = definition

    @property
    def main(self):
        return self.functions[Program.ENTRY]

    def validate(self):
        """Raises a ParseError if there is no entry function, or if any call site names a function that does not
        exist or passes it the wrong number of arguments.
        """
        if Program.ENTRY not in self.functions:
            raise ParseError("no entry function: '{}' is not defined", Program.ENTRY, diagnosis=False)

        for call in self.calls:
            target = self.functions.get(call.name)
            if target is None:
                raise ParseError("call to non-existent function '{}'", render(call), line=call.line, col=call.col)

            elif len(call.arguments) != target.arity:
                msg = "call to non-existent function '{}': '{}' takes {} argument(s)"
                raise ParseError(msg, (render(call), target.name, target.arity), line=call.line, col=call.col)

    def render(self):
        """Every definition in canonical debug form, one per line."""
        return "\n".join(definition.render() for definition in self.functions.values())

    def source(self):
        return "".join(definition.source() + "\n" for definition in self.functions.values())

    def __contains__(self, name):
        return name in self.functions

    def __getitem__(self, name):
        return self.functions[name]

    def __len__(self):
        return len(self.functions)


class ProgramParser(ExpressionParser):
    """Parses an entire source text into a Program."""

    def __init__(self, text, config=None):
        if config is None:
            config = ParserConfig()

        self.config = config
        self.program = Program()
        super().__init__(Lexer(text), self.program.calls, config.max_arguments)

    def parse(self, validate=True):
        """Parses every definition up to EOF. If validate, also runs Program.validate."""
        count = 0
        while self.token.kind != TK.EOF:
            count += 1
            self.program.define(self.parse_definition(count))

        if validate:
            self.program.validate()
        return self.program

    def parse_definition(self, line):
        """Parses one definition. line is its position in the program (1 for the first definition)."""
        self.expect(TK.DEF, "'DEF'")
        self.expect(TK.SPACE, "space")

        parameters = []
        if self.token.kind == TK.MAIN:
            name = self.advance().text
            self.expect(TK.SPACE, "space")

            if self.token.kind == TK.PARAM:
                token = self.token
                raise ParseError("'{}' takes no parameters", name, line=token.line, col=token.col,
                                 length=len(token.text))

        elif self.token.kind == TK.FUNC:
            name = self.advance().text
            self.expect(TK.SPACE, "space")

            while self.token.kind == TK.PARAM:
                parameters.append(self.advance().text)
                self.expect(TK.SPACE, "space")

        else:
            self.error("a function name")

        self.expect(TK.LBRACE, "'{'")
        self.expect(TK.SPACE, "space")
        body = self.parse_sum(frozenset(parameters))
        self.expect(TK.SPACE, "space")
        self.expect(TK.RBRACE, "'}'")
        self.expect(TK.SPACE, "space")
        self.expect(TK.END, "';' and a newline")

        return FunctionDefinition(name, tuple(parameters), body, line)


def parse_program(text, config=None):
    """Parses and validates text, returning its Program."""
    return ProgramParser(text, config).parse()
