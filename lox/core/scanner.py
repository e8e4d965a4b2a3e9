"""Lexical analysis for the lox language. The Scanner pulls characters on demand from a CharReader and hands out one
Token per next_token call, so a program can be scanned while it is still being typed in.

Lexical grammar:

```
<token>      ::= "(" | ")" | "{" | "}" | "," | "." | "-" | "+" | ";" | "*" | "/"
               | "!" | "!=" | "=" | "==" | "<" | "<=" | ">" | ">="
               | <number> | <string> | <identifier>
<number>     ::= <digit>+ ( "." <digit>+ )?    ; a trailing "." is not part of the number
<string>     ::= '"' <char>* '"'               ; no escape sequences, may span lines
<identifier> ::= <alpha> ( <alpha> | <digit> )*  ; keywords are identifiers found in KEYWORDS
<comment>    ::= "//" <char>* "\n"             ; skipped, like whitespace
```
"""

import math
from collections import deque

from lox.core.tokens import KEYWORDS, Token, TokenType
from lox.lang.error import LexicalError


class CharReader:
    """Pull-based character source over a text stream, with unbounded lookahead. End of input is signalled by the
    EOF sentinel rather than an exception, and stays signalled once reached.
    """
    EOF = ""

    def __init__(self, stream):
        self.stream = stream
        self._buffer = deque()
        self._exhausted = False

    def peek(self, offset=0):
        """Returns the character offset places ahead without consuming anything."""
        while len(self._buffer) <= offset:
            if self._exhausted:
                return CharReader.EOF

            char = self.stream.read(1)
            if not char:
                self._exhausted = True
                return CharReader.EOF
            self._buffer.append(char)

        return self._buffer[offset]

    def advance(self):
        """Consumes and returns the next character (EOF is never consumed)."""
        char = self.peek()
        if char != CharReader.EOF:
            self._buffer.popleft()
        return char


def is_digit(char):
    return "0" <= char <= "9"


def is_alpha(char):
    return char.isalpha() or char == "_"


def is_alphanumeric(char):
    return is_alpha(char) or is_digit(char)


class Scanner:
    """Turns a character stream into tokens, one at a time."""
    SINGLE = {
        "(": TokenType.LEFT_PAREN,
        ")": TokenType.RIGHT_PAREN,
        "{": TokenType.LEFT_BRACE,
        "}": TokenType.RIGHT_BRACE,
        ",": TokenType.COMMA,
        ".": TokenType.DOT,
        "-": TokenType.MINUS,
        "+": TokenType.PLUS,
        ";": TokenType.SEMICOLON,
        "*": TokenType.STAR,
        "/": TokenType.SLASH,
    }
    DOUBLE = {  # char: (kind alone, kind when followed by "=")
        "!": (TokenType.BANG, TokenType.BANG_EQUAL),
        "=": (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
        "<": (TokenType.LESS, TokenType.LESS_EQUAL),
        ">": (TokenType.GREATER, TokenType.GREATER_EQUAL),
    }

    def __init__(self, reader):
        """reader can be a CharReader or any text stream (it will be wrapped)."""
        if not isinstance(reader, CharReader):
            reader = CharReader(reader)

        self.reader = reader
        self.line = 1
        self._lexeme = []

    def next_token(self):
        """Returns the next Token. Raises a LexicalError for a bad span, after consuming it, so that calling
        next_token again continues right after the error.
        """
        self._skip_ignored()
        self._lexeme = []

        char = self._advance()
        if char == CharReader.EOF:
            return self._token(TokenType.EOF)

        elif char in Scanner.DOUBLE:
            alone, with_equal = Scanner.DOUBLE[char]
            return self._token(with_equal if self._match("=") else alone)

        elif char in Scanner.SINGLE:
            return self._token(Scanner.SINGLE[char])

        elif char == "\"":
            return self._string()

        elif is_digit(char):
            return self._number()

        elif is_alpha(char):
            return self._identifier()

        raise LexicalError("unexpected character", self.line)

    def _skip_ignored(self):
        """Skips whitespace and // comments. Newlines are counted by _advance."""
        while True:
            char = self.reader.peek()
            if char.isspace():
                self._advance()
            elif char == "/" and self.reader.peek(1) == "/":
                while self.reader.peek() not in ("\n", CharReader.EOF):
                    self._advance()
            else:
                return

    def _string(self):
        while self.reader.peek() not in ("\"", CharReader.EOF):
            self._advance()

        if self.reader.peek() == CharReader.EOF:
            raise LexicalError("unterminated string", self.line)

        self._advance()  # closing quote
        lexeme = "".join(self._lexeme)
        return self._token(TokenType.STRING, lexeme[1:-1])

    def _number(self):
        while is_digit(self.reader.peek()):
            self._advance()

        # fractional part only if a digit follows the dot
        if self.reader.peek() == "." and is_digit(self.reader.peek(1)):
            self._advance()
            while is_digit(self.reader.peek()):
                self._advance()

        value = float("".join(self._lexeme))
        if math.isinf(value):
            raise LexicalError("invalid number", self.line)
        return self._token(TokenType.NUMBER, value)

    def _identifier(self):
        while is_alphanumeric(self.reader.peek()):
            self._advance()

        kind = KEYWORDS.get("".join(self._lexeme), TokenType.IDENTIFIER)
        return self._token(kind)

    def _match(self, expected):
        if self.reader.peek() != expected:
            return False
        self._advance()
        return True

    def _advance(self):
        char = self.reader.advance()
        if char == "\n":
            self.line += 1
        if char != CharReader.EOF:
            self._lexeme.append(char)
        return char

    def _token(self, kind, literal=None):
        return Token(kind, "".join(self._lexeme), literal, self.line)
