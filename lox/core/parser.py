"""Recursive descent parser for the lox language. Statements are handed out one at a time by next_statement, pulling
tokens from the Scanner only as far as needed.

Grammar (lowest to highest precedence for expressions):

```
<statement>  ::= <var_decl> | <fun_decl> | <block> | <if> | <while> | <print> | <assert> | <return> | <expr_stmt>
               | EOF                                        ; end marker
<var_decl>   ::= "var" IDENTIFIER ( "=" <expression> )? ";"
<fun_decl>   ::= "fun" IDENTIFIER "(" <parameters>? ")" <block>
<block>      ::= "{" <statement>* "}"
<if>         ::= "if" "(" <expression> ")" <statement> ( "else" <statement> )?
<while>      ::= "while" "(" <expression> ")" <statement>
<print>      ::= "print" <expression> ";"
<assert>     ::= "assert" <expression> ";"
<return>     ::= "return" <expression>? ";"
<expr_stmt>  ::= <expression> ";"

<expression> ::= <assignment>
<assignment> ::= IDENTIFIER "=" <assignment> | <or>        ; right-associative
<or>         ::= <and> ( "or" <and> )*
<and>        ::= <equality> ( "and" <equality> )*
<equality>   ::= <comparison> ( ( "!=" | "==" ) <comparison> )*
<comparison> ::= <term> ( ( ">" | ">=" | "<" | "<=" ) <term> )*
<term>       ::= <factor> ( ( "-" | "+" ) <factor> )*
<factor>     ::= <unary> ( ( "/" | "*" ) <unary> )*
<unary>      ::= ( "!" | "-" ) <unary> | <call>
<call>       ::= <primary> ( "(" <arguments>? ")" )*
<primary>    ::= NUMBER | STRING | "true" | "false" | "nil" | IDENTIFIER | "(" <expression> ")"
```

After a LoxSyntaxError (or a LexicalError pulled from the Scanner), the parser skips ahead to the next statement
keyword, so one broken statement produces one error and the next call starts cleanly.
"""

from lox.core.tokens import TokenType
from lox.core.tree import (Assignment, AssertStmt, Binary, Block, Call, EndMarker, ExpressionStmt, FunctionDecl,
                           Grouping, If, Literal, Logical, PrintStmt, Return, Unary, VarDecl, Variable, While)
from lox.lang.error import LexicalError, LoxError, LoxSyntaxError


class Parser:
    """Builds statements from a Scanner's tokens."""
    SYNC_POINTS = {
        TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR, TokenType.IF, TokenType.WHILE,
        TokenType.PRINT, TokenType.ASSERT, TokenType.RETURN, TokenType.EOF,
    }

    def __init__(self, scanner):
        self.scanner = scanner
        self._tokens = []  # lookahead buffer, _tokens[0] is the current token

    def next_statement(self):
        """Parses and returns the next statement (EndMarker at end of input). Raises LoxSyntaxError or
        LexicalError, after resynchronizing. Input nested deeper than the Python stack allows is a LoxSyntaxError too.
        """
        try:
            return self._statement()
        except LoxError as error:
            # a LexicalError has already consumed its bad span, anything else leaves the offending token buffered
            self._synchronize(skip=not isinstance(error, LexicalError))
            raise
        except RecursionError:
            line = self.scanner.line
            self._synchronize()
            raise LoxSyntaxError("maximum nesting depth exceeded", line) from None

    # statements

    def _statement(self):
        if self._check(TokenType.EOF):
            self._pop()
            return EndMarker()
        if self._check(TokenType.VAR):
            return self._var_declaration()
        if self._check(TokenType.FUN):
            return self._function_declaration()
        if self._check(TokenType.LEFT_BRACE):
            self._pop()
            return Block(self._block())
        if self._check(TokenType.IF):
            return self._if_statement()
        if self._check(TokenType.WHILE):
            return self._while_statement()
        if self._check(TokenType.PRINT):
            return self._print_statement()
        if self._check(TokenType.ASSERT):
            return self._assert_statement()
        if self._check(TokenType.RETURN):
            return self._return_statement()
        return self._expression_statement()

    def _var_declaration(self):
        self._pop()
        name = self._expect(TokenType.IDENTIFIER, "expected identifier after 'var'")

        initializer = None
        if self._check(TokenType.EQUAL):
            self._pop()
            initializer = self._expression()

        self._expect(TokenType.SEMICOLON, "expected ';' after variable declaration")
        return VarDecl(name, initializer)

    def _function_declaration(self):
        self._pop()
        name = self._expect(TokenType.IDENTIFIER, "expected function name after 'fun'")
        self._expect(TokenType.LEFT_PAREN, "expected '(' after function name")

        params = []
        if not self._check(TokenType.RIGHT_PAREN):
            params.append(self._expect(TokenType.IDENTIFIER, "expected parameter name"))
            while self._check(TokenType.COMMA):
                self._pop()
                params.append(self._expect(TokenType.IDENTIFIER, "expected parameter name"))

        self._expect(TokenType.RIGHT_PAREN, "expected ')' after parameters")
        self._expect(TokenType.LEFT_BRACE, "expected '{' before function body")
        return FunctionDecl(name, params, self._block())

    def _block(self):
        """Parses statement* "}" (the "{" is already consumed) and returns the statement list."""
        statements = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._check(TokenType.EOF):
            statements.append(self._statement())

        self._expect(TokenType.RIGHT_BRACE, "expected '}' after block")
        return statements

    def _if_statement(self):
        self._pop()
        self._expect(TokenType.LEFT_PAREN, "expected '(' after 'if'")
        condition = self._expression()
        self._expect(TokenType.RIGHT_PAREN, "expected ')' after if condition")

        then_branch = self._statement()
        else_branch = None
        if self._check(TokenType.ELSE):  # binds to the nearest if
            self._pop()
            else_branch = self._statement()
        return If(condition, then_branch, else_branch)

    def _while_statement(self):
        self._pop()
        self._expect(TokenType.LEFT_PAREN, "expected '(' after 'while'")
        condition = self._expression()
        self._expect(TokenType.RIGHT_PAREN, "expected ')' after while condition")
        return While(condition, self._statement())

    def _print_statement(self):
        self._pop()
        expression = self._expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after expression")
        return PrintStmt(expression)

    def _assert_statement(self):
        keyword = self._pop()
        expression = self._expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after expression")
        return AssertStmt(keyword, expression)

    def _return_statement(self):
        keyword = self._pop()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after return value")
        return Return(keyword, value)

    def _expression_statement(self):
        expression = self._expression()
        self._expect(TokenType.SEMICOLON, "expected ';' after expression")
        return ExpressionStmt(expression)

    # expressions

    def _expression(self):
        return self._assignment()

    def _assignment(self):
        expr = self._or()

        if self._check(TokenType.EQUAL):
            equals = self._pop()
            value = self._assignment()

            if isinstance(expr, Variable):
                return Assignment(expr.name, value)
            raise LoxSyntaxError("invalid assignment target", equals.line)

        return expr

    def _or(self):
        return self._logical(self._and, TokenType.OR)

    def _and(self):
        return self._logical(self._equality, TokenType.AND)

    def _logical(self, operand, kind):
        left = operand()
        while self._check(kind):
            operator = self._pop()
            left = Logical(left, operator, operand())
        return left

    def _equality(self):
        return self._binary(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self):
        return self._binary(self._term, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS,
                            TokenType.LESS_EQUAL)

    def _term(self):
        return self._binary(self._factor, TokenType.MINUS, TokenType.PLUS)

    def _factor(self):
        return self._binary(self._unary, TokenType.SLASH, TokenType.STAR)

    def _binary(self, operand, *kinds):
        """Left-associative loop shared by every binary precedence level."""
        left = operand()
        while self._check(*kinds):
            operator = self._pop()
            left = Binary(left, operator, operand())
        return left

    def _unary(self):
        if self._check(TokenType.BANG, TokenType.MINUS):
            operator = self._pop()
            return Unary(operator, self._unary())
        return self._call()

    def _call(self):
        expr = self._primary()

        while self._check(TokenType.LEFT_PAREN):
            self._pop()
            arguments = []
            if not self._check(TokenType.RIGHT_PAREN):
                arguments.append(self._expression())
                while self._check(TokenType.COMMA):
                    self._pop()
                    arguments.append(self._expression())

            paren = self._expect(TokenType.RIGHT_PAREN, "expected ')' after arguments")
            expr = Call(expr, paren, arguments)

        return expr

    def _primary(self):
        token = self._peek()

        if token.kind is TokenType.IDENTIFIER:
            return Variable(self._pop())
        elif token.kind is TokenType.FALSE:
            self._pop()
            return Literal(False)
        elif token.kind is TokenType.TRUE:
            self._pop()
            return Literal(True)
        elif token.kind is TokenType.NIL:
            self._pop()
            return Literal(None)
        elif token.kind in (TokenType.NUMBER, TokenType.STRING):
            return Literal(self._pop().literal)
        elif token.kind is TokenType.LEFT_PAREN:
            self._pop()
            expression = self._expression()
            self._expect(TokenType.RIGHT_PAREN, "expected ')' after expression")
            return Grouping(expression)

        raise LoxSyntaxError("expected expression", token.line)

    # token buffer

    def _peek(self, offset=0):
        """Returns the token offset places ahead, scanning more tokens if needed. LexicalErrors propagate."""
        while len(self._tokens) <= offset:
            self._tokens.append(self.scanner.next_token())
        return self._tokens[offset]

    def _pop(self):
        token = self._peek()
        del self._tokens[0]
        return token

    def _check(self, *kinds):
        return self._peek().kind in kinds

    def _expect(self, kind, msg):
        token = self._peek()
        if token.kind is not kind:
            if token.kind is TokenType.EOF:
                msg += " (at end)"
            else:
                msg += f" (at '{token.lexeme}')"
            raise LoxSyntaxError(msg, token.line)
        return self._pop()

    def _synchronize(self, skip=True):
        """Discards the offending token (if skip), then everything up to the next statement keyword or EOF. Lexical
        errors met on the way are dropped: they belong to a statement that is already being reported.
        """
        while True:
            try:
                if skip:
                    self._pop()
                if self._peek().kind in Parser.SYNC_POINTS:
                    return
                skip = True
            except LexicalError:
                skip = False  # the bad span is already consumed by the scanner
