"""Token generator for deflang source text.

Whitespace is not filler in deflang: a single space is a token of its own (SPACE) and the grammar says exactly where
one is required. Statements end with ';' immediately followed by a newline, so a bare ';' is a lexing error.

```
<END>    ::= ";" ("\\n" | "\\r\\n")
<SPACE>  ::= " "
<FUNC>   ::= [A-Z]+              ; "DEF" and "MAIN" are keywords, longer words are function names
<PARAM>  ::= [a-z]+
<NUMBER> ::= [0-9]+
```
"""

import re
from dataclasses import dataclass

from deflang.lang.error import LexError


class TK:
    PLUS   = "PLUS"
    TIMES  = "TIMES"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    LBRACE = "LBRACE"
    RBRACE = "RBRACE"
    DEF    = "DEF"
    MAIN   = "MAIN"
    FUNC   = "FUNC"
    PARAM  = "PARAM"
    NUMBER = "NUMBER"
    SPACE  = "SPACE"
    END    = "END"
    EOF    = "EOF"


ENTRY = "MAIN"  # name of the zero-argument function a program evaluates to

KEYWORDS = {"DEF": TK.DEF, ENTRY: TK.MAIN}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    line: int
    col: int

    DESCRIPTIONS = {TK.SPACE: "space", TK.END: "end of statement", TK.EOF: "end of input"}

    def __str__(self):
        return Token.DESCRIPTIONS.get(self.kind, f"'{self.text}'")


class Lexer:
    """Produces Tokens lazily, one per call to next_token. Once the input is exhausted, every call returns EOF."""

    rules = [
        (re.compile(r";\r?\n"), TK.END),
        (re.compile(r" "), TK.SPACE),
        (re.compile(r"\+"), TK.PLUS),
        (re.compile(r"\*"), TK.TIMES),
        (re.compile(r"\("), TK.LPAREN),
        (re.compile(r"\)"), TK.RPAREN),
        (re.compile(r"\{"), TK.LBRACE),
        (re.compile(r"\}"), TK.RBRACE),
        (re.compile(r"[A-Z]+"), TK.FUNC),
        (re.compile(r"[a-z]+"), TK.PARAM),
        (re.compile(r"[0-9]+"), TK.NUMBER),
    ]

    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.line = 1
        self.col = 1

    def next_token(self):
        """Returns the next Token, raising a LexError if no rule matches at the current position."""
        if self.pos >= len(self.text):
            return Token(TK.EOF, "", self.line, self.col)

        for pattern, kind in self.rules:
            match = pattern.match(self.text, self.pos)
            if match:
                break
        else:
            char = self.text[self.pos]
            if char == ";":
                raise LexError("'{}' must be followed by a newline", char, line=self.line, col=self.col)
            raise LexError("unexpected character '{}'", char.encode("unicode_escape").decode(), line=self.line,
                           col=self.col, length=1)

        text = match.group()
        if kind == TK.FUNC:
            kind = KEYWORDS.get(text, TK.FUNC)

        token = Token(kind, text, self.line, self.col)

        self.pos = match.end()
        if kind == TK.END:
            self.line += 1
            self.col = 1
        else:
            self.col += len(text)

        return token

    def __iter__(self):
        """Yields every token up to and including EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.kind == TK.EOF:
                return


def tokenize(text):
    """Returns the list of tokens in text (EOF included)."""
    return list(Lexer(text))
