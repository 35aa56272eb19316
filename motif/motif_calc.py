"""
The arithmetic evaluator used by operators for count expressions, shape
formulas and noise coordinates.

Text is tokenized by a koine grammar (grammar/calc_grammar.yaml) and
evaluated here with the usual precedence: `^` binds tightest and is
right-associative, then unary signs, then `* / %` (including implicit
multiplication such as `5t` or `2(x+1)`), then `+ -`.
"""
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from koine import Parser

from motif.motif_values import to_number, remainder

Token = Tuple[str, str]

FUNCTIONS = {
    'sin': math.sin, 'cos': math.cos, 'tan': math.tan,
    'asin': math.asin, 'acos': math.acos, 'atan': math.atan, 'atan2': math.atan2,
    'abs': abs, 'floor': math.floor, 'ceil': math.ceil,
    'round': lambda n: math.floor(n + 0.5),
    'sqrt': math.sqrt, 'pow': math.pow, 'min': min, 'max': max,
    'log': math.log, 'exp': math.exp, 'hypot': math.hypot,
    'sign': lambda n: (n > 0) - (n < 0),
}

CONSTANTS = {
    'PI': math.pi, 'π': math.pi, 'E': math.e, 'e': math.e,
}


class CalcError(ValueError):
    pass


class Calculator:
    """Parses and evaluates arithmetic text against a variable mapping."""

    _parser: Optional[Parser] = None

    def __init__(self):
        if Calculator._parser is None:
            grammar_path = Path(__file__).parent / "grammar" / "calc_grammar.yaml"
            Calculator._parser = Parser.from_file(str(grammar_path))
        self.parser = Calculator._parser

    def tokenize(self, text: str) -> List[Token]:
        try:
            parse_out = self.parser.parse(text)
        except Exception:
            raise CalcError('parse failed') from None
        if isinstance(parse_out, dict) and 'status' in parse_out:
            if parse_out.get('status') != 'success':
                raise CalcError(parse_out.get('error_message') or 'parse error')
            ast_node = parse_out.get('ast')
        else:
            ast_node = parse_out
        tokens: List[Token] = []
        self._collect(ast_node, tokens)
        return tokens

    def _collect(self, node: Any, out: List[Token]):
        # Tokens are the leaves; wrappers may hold children as a list or a dict.
        if isinstance(node, list):
            for n in node:
                self._collect(n, out)
            return
        if not isinstance(node, dict):
            return
        if 'children' in node:
            children = node['children']
            if isinstance(children, dict):
                children = list(children.values())
            self._collect(children, out)
            return
        text = node.get('text')
        if isinstance(text, str) and text.strip():
            out.append(_classify(text.strip()))

    def evaluate(self, text: str, variables: Optional[Dict[str, Any]] = None):
        tokens = self.tokenize(text)
        if not tokens:
            raise CalcError('empty expression')
        reader = _Reader(tokens, variables or {})
        value = reader.expression()
        if not reader.done():
            raise CalcError(f"unexpected token {reader.peek()[1]!r}")
        return value


def _classify(text: str) -> Token:
    c = text[0]
    if c.isdigit() or c == '.':
        return ('number', text)
    if c in '+-*/%^':
        return ('op', text)
    if c in '(),':
        return ('punct', text)
    return ('name', text)


class _Reader:
    def __init__(self, tokens: List[Token], variables: Dict[str, Any]):
        self.tokens = tokens
        self.pos = 0
        self.variables = variables

    def peek(self) -> Optional[Token]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def done(self) -> bool:
        return self.pos >= len(self.tokens)

    def take(self) -> Token:
        token = self.peek()
        if token is None:
            raise CalcError('unexpected end of expression')
        self.pos += 1
        return token

    def expect(self, text: str):
        token = self.take()
        if token[1] != text:
            raise CalcError(f"expected {text!r}, got {token[1]!r}")

    def expression(self):
        value = self.term()
        while (token := self.peek()) and token[0] == 'op' and token[1] in '+-':
            self.take()
            rhs = self.term()
            value = value + rhs if token[1] == '+' else value - rhs
        return value

    def term(self):
        value = self.unary()
        while (token := self.peek()):
            kind, text = token
            if kind == 'op' and text in '*/%':
                self.take()
                rhs = self.unary()
                if text == '*':
                    value = value * rhs
                elif rhs == 0:
                    raise CalcError('division by zero')
                elif text == '/':
                    value = value / rhs
                else:
                    value = remainder(value, rhs)
            elif kind in ('number', 'name') or text == '(':
                value = value * self.unary()
            else:
                break
        return value

    def unary(self):
        token = self.peek()
        if token and token[0] == 'op' and token[1] in '+-':
            self.take()
            value = self.unary()
            return -value if token[1] == '-' else value
        return self.power()

    def power(self):
        base = self.primary()
        token = self.peek()
        if token and token == ('op', '^'):
            self.take()
            return math.pow(base, self.unary())
        return base

    def primary(self):
        kind, text = self.take()
        if kind == 'number':
            return to_number(text)
        if text == '(':
            value = self.expression()
            self.expect(')')
            return value
        if kind == 'name':
            if text in FUNCTIONS and self.peek() == ('punct', '('):
                return self.call(FUNCTIONS[text])
            if text in self.variables:
                return to_number(self.variables[text])
            if text in CONSTANTS:
                return CONSTANTS[text]
            return 0
        raise CalcError(f"unexpected token {text!r}")

    def call(self, fn):
        self.expect('(')
        args = []
        if self.peek() != ('punct', ')'):
            args.append(self.expression())
            while self.peek() == ('punct', ','):
                self.take()
                args.append(self.expression())
        self.expect(')')
        return fn(*args)


_calculator: Optional[Calculator] = None


def calc(text, variables: Optional[Dict[str, Any]] = None):
    """Evaluate arithmetic text; malformed input evaluates to 0."""
    global _calculator
    if isinstance(text, (int, float)):
        return text
    text = str(text if text is not None else '').strip()
    if not text:
        return 0
    plain = to_number(text, default=None)
    if plain is not None:
        return plain
    if _calculator is None:
        _calculator = Calculator()
    try:
        value = _calculator.evaluate(text, variables)
    except (CalcError, ArithmeticError, TypeError, ValueError):
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
