#!/usr/bin/env python3
"""
Plural-Forms engine.

Answers two questions for a locale, optionally overridden by the value of
a ``Plural-Forms`` header:

    plural_count("pl")                           -> 3
    plural_index("pl", None, 5)                  -> 2
    plural_index("xx", "nplurals=2; plural=n>1;", 0) -> 0

Plural expressions use the C subset understood by GNU gettext. They are
parsed once into a tree of closures and never passed to ``eval``.
"""

import functools
import re
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import PluralFormsError, UnknownLocaleError
from .messages import header_value

Rule = Callable[[int], int]

_TOKEN_PATTERN = re.compile(r"""
        (?P<WHITESPACES>[ \t]+)                    | # spaces and horizontal tabs
        (?P<NUMBER>[0-9]+\b)                       | # decimal integer
        (?P<NAME>n\b)                              | # only n is allowed
        (?P<PARENTHESIS>[()])                      |
        (?P<OPERATOR>[-*/%+?:]|[><!]=?|==|&&|\|\|) | # !, *, /, %, +, -, <, >,
                                                     # <=, >=, ==, !=, &&, ||,
                                                     # ? :
        (?P<INVALID>\w+|.)                           # invalid token
    """, re.VERBOSE | re.DOTALL)

# binary operator priorities, higher binds tighter
_BINARY_OPS = {
    "||": 1,
    "&&": 2,
    "==": 3, "!=": 3,
    "<": 4, ">": 4, "<=": 4, ">=": 4,
    "+": 5, "-": 5,
    "*": 6, "/": 6, "%": 6,
}


def _c_div(a: int, b: int) -> int:
    """Integer division truncating toward zero, as in C."""
    if b == 0:
        raise PluralFormsError("division by zero in plural expression")
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _c_mod(a: int, b: int) -> int:
    return a - b * _c_div(a, b)


def _binary(op: str, left: Rule, right: Rule) -> Rule:
    if op == "||":
        return lambda n: int(bool(left(n)) or bool(right(n)))
    if op == "&&":
        return lambda n: int(bool(left(n)) and bool(right(n)))
    if op == "==":
        return lambda n: int(left(n) == right(n))
    if op == "!=":
        return lambda n: int(left(n) != right(n))
    if op == "<":
        return lambda n: int(left(n) < right(n))
    if op == ">":
        return lambda n: int(left(n) > right(n))
    if op == "<=":
        return lambda n: int(left(n) <= right(n))
    if op == ">=":
        return lambda n: int(left(n) >= right(n))
    if op == "+":
        return lambda n: left(n) + right(n)
    if op == "-":
        return lambda n: left(n) - right(n)
    if op == "*":
        return lambda n: left(n) * right(n)
    if op == "/":
        return lambda n: _c_div(left(n), right(n))
    return lambda n: _c_mod(left(n), right(n))


def _tokenize_expression(source: str) -> list[str]:
    tokens = []
    for match in _TOKEN_PATTERN.finditer(source):
        kind = match.lastgroup
        if kind == "WHITESPACES":
            continue
        value = match.group(kind)
        if kind == "INVALID":
            raise PluralFormsError(f"invalid token in plural expression: {value!r}")
        tokens.append(value)
    return tokens


class _ExpressionParser:
    """Precedence-climbing parser producing a closure over n."""

    def __init__(self, source: str):
        self.source = source
        self.tokens = _tokenize_expression(source)
        self.pos = 0

    def _peek(self) -> str:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else ""

    def _advance(self) -> str:
        token = self._peek()
        self.pos += 1
        return token

    def _expect(self, token: str):
        if self._advance() != token:
            raise PluralFormsError(f"expected {token!r} in plural expression: {self.source!r}")

    def parse(self) -> Rule:
        if not self.tokens:
            raise PluralFormsError("empty plural expression")
        rule = self._ternary()
        if self.pos != len(self.tokens):
            raise PluralFormsError(
                f"unexpected {self._peek()!r} in plural expression: {self.source!r}"
            )
        return rule

    def _ternary(self) -> Rule:
        condition = self._binary(1)
        if self._peek() != "?":
            return condition
        self._advance()
        if_true = self._ternary()
        self._expect(":")
        if_false = self._ternary()
        return lambda n: if_true(n) if condition(n) else if_false(n)

    def _binary(self, min_priority: int) -> Rule:
        left = self._unary()
        while True:
            op = self._peek()
            priority = _BINARY_OPS.get(op)
            if priority is None or priority < min_priority:
                return left
            self._advance()
            right = self._binary(priority + 1)
            left = _binary(op, left, right)

    def _unary(self) -> Rule:
        token = self._advance()
        if token == "!":
            operand = self._unary()
            return lambda n: int(not operand(n))
        if token == "(":
            inner = self._ternary()
            self._expect(")")
            return inner
        if token == "n":
            return lambda n: n
        if token.isdigit():
            value = int(token)
            return lambda n: value
        if not token:
            raise PluralFormsError(f"unexpected end of plural expression: {self.source!r}")
        raise PluralFormsError(f"unexpected {token!r} in plural expression: {self.source!r}")


@functools.lru_cache(maxsize=None)
def compile_expression(source: str) -> Rule:
    """Compile a plural expression such as ``n != 1`` into a function of n."""
    return _ExpressionParser(source).parse()


@dataclass(frozen=True)
class PluralForms:
    """Parsed ``Plural-Forms`` header value."""
    nplurals: int
    expression: Optional[str] = None

    @property
    def rule(self) -> Optional[Rule]:
        if self.expression is None:
            return None
        return compile_expression(self.expression)

    def to_header(self) -> str:
        return f"nplurals={self.nplurals}; plural={self.expression or '0'};"


@functools.lru_cache(maxsize=None)
def parse_plural_forms(value: str) -> PluralForms:
    """
    Parse ``nplurals=<N>; plural=<expr>;``.

    The ``plural=`` part is optional. Raises PluralFormsError when
    ``nplurals`` is missing or not a positive integer, or when the
    expression does not compile.
    """
    nplurals = None
    expression = None
    for part in value.split(";"):
        name, sep, rhs = part.partition("=")
        name = name.strip()
        if not name and not sep:
            continue
        if name == "nplurals":
            try:
                nplurals = int(rhs.strip())
            except ValueError:
                raise PluralFormsError(f"invalid nplurals in Plural-Forms: {value!r}") from None
        elif name == "plural":
            expression = rhs.strip()

    if nplurals is None or nplurals < 1:
        raise PluralFormsError(f"missing or invalid nplurals in Plural-Forms: {value!r}")
    if expression is not None:
        compile_expression(expression)
    return PluralForms(nplurals, expression)


# Default rules, keyed by locale. Format: name -> (nplurals, expression)
_RULES = {
    "one_form": (1, "0"),
    "two_forms_1": (2, "n != 1"),
    "two_forms_2": (2, "n > 1"),
    "slavic": (3, "n%10==1 && n%100!=11 ? 0 : n%10>=2 && n%10<=4 && (n%100<10 || n%100>=20) ? 1 : 2"),
    "czech": (3, "(n==1) ? 0 : (n>=2 && n<=4) ? 1 : 2"),
    "arabic": (6, "n==0 ? 0 : n==1 ? 1 : n==2 ? 2 : n%100>=3 && n%100<=10 ? 3 : n%100>=11 ? 4 : 5"),
    "polish": (3, "n==1 ? 0 : n%10>=2 && n%10<=4 && (n%100<10 || n%100>=20) ? 1 : 2"),
    "welsh": (4, "n==1 ? 0 : n==2 ? 1 : (n != 8 && n != 11) ? 2 : 3"),
    "irish": (5, "n==1 ? 0 : n==2 ? 1 : (n>2 && n<7) ? 2 : (n>6 && n<11) ? 3 : 4"),
    "scottish_gaelic": (4, "(n==1 || n==11) ? 0 : (n==2 || n==12) ? 1 : (n > 2 && n < 20) ? 2 : 3"),
    "icelandic": (2, "n%10==1 && n%100!=11 ? 0 : 1"),
    "javanese": (2, "n != 0"),
    "cornish": (4, "n==1 ? 0 : n==2 ? 1 : n==3 ? 2 : 3"),
    "lithuanian": (3, "n%10==1 && n%100!=11 ? 0 : n%10>=2 && (n%100<10 || n%100>=20) ? 1 : 2"),
    "latvian": (3, "n%10==1 && n%100!=11 ? 0 : n != 0 ? 1 : 2"),
    "macedonian": (3, "n%10==1 ? 0 : n%10==2 ? 1 : 2"),
    "mandinka": (3, "n==0 ? 0 : n==1 ? 1 : 2"),
    "maltese": (4, "n==1 ? 0 : n==0 || (n%100>1 && n%100<11) ? 1 : (n%100>10 && n%100<20) ? 2 : 3"),
    "romanian": (3, "n==1 ? 0 : (n==0 || (n%100>0 && n%100<20)) ? 1 : 2"),
    "slovenian": (4, "n%100==1 ? 1 : n%100==2 ? 2 : n%100==3 || n%100==4 ? 3 : 0"),
}

_RULE_LOCALES = {
    "one_form": "ay bo cgg dz fa id ja jbo ka kk km ko ky lo ms my sah su th tt ug vi wo zh",
    "two_forms_1": (
        "af an anp as ast az bg bn brx ca da de doi el en eo es et eu ff fi fo fur fy gl gu "
        "ha he hi hne hy hu ia it kl kn ku lb mai ml mn mni mr nah nap nb ne nl se nn no nso "
        "or ps pa pap pms pt rm rw sat sco sd si so son sq sw sv ta te tk ur yo"
    ),
    "two_forms_2": "ach ak am arn br fil fr gun ln mfe mg mi oc tg ti tl tr uz wa pt_BR",
    "slavic": "be bs hr sr ru uk",
    "czech": "cs sk",
    "arabic": "ar",
    "polish": "csb pl",
    "welsh": "cy",
    "irish": "ga",
    "scottish_gaelic": "gd",
    "icelandic": "is",
    "javanese": "jv",
    "cornish": "kw",
    "lithuanian": "lt",
    "latvian": "lv",
    "macedonian": "mk",
    "mandinka": "mnk",
    "maltese": "mt",
    "romanian": "ro",
    "slovenian": "sl",
}

LOCALE_RULES = {
    locale: rule_name
    for rule_name, locales in _RULE_LOCALES.items()
    for locale in locales.split()
}


def _rule_name(locale: str) -> Optional[str]:
    """
    Name of the built-in rule for a locale, or None.

    Tries the locale as given, then the language before the first "_"
    ("en_US" -> "en"). Entries with a territory ("pt_BR") are exact
    matches, so they never fall back to the language rule.
    """
    rule_name = LOCALE_RULES.get(locale)
    if rule_name is None:
        language, sep, _territory = locale.partition("_")
        if sep:
            rule_name = LOCALE_RULES.get(language)
    return rule_name


def _default_forms(locale: str) -> PluralForms:
    rule_name = _rule_name(locale)
    if rule_name is None:
        raise UnknownLocaleError(locale)
    nplurals, expression = _RULES[rule_name]
    return PluralForms(nplurals, expression)


def plural_count(locale: Optional[str], header: Optional[str] = None) -> int:
    """Number of plural forms; the header wins over the locale default."""
    if header:
        return parse_plural_forms(header).nplurals
    if locale is None:
        raise UnknownLocaleError("")
    return _default_forms(locale).nplurals


def plural_index(locale: Optional[str], header: Optional[str], n: int) -> int:
    """
    Plural slot to use for ``n``.

    A header with a ``plural=`` expression decides on its own; a header
    with only ``nplurals`` falls back to the locale rule.
    """
    if header:
        forms = parse_plural_forms(header)
        if forms.rule is not None:
            return forms.rule(n)
    if locale is None:
        raise UnknownLocaleError("")
    return _default_forms(locale).rule(n)


def nplurals(locale: str) -> int:
    return plural_count(locale)


def plural(locale: str, n: int) -> int:
    return plural_index(locale, None, n)


def plural_forms_header(locale: str, count: Optional[int] = None) -> str:
    """
    ``Plural-Forms`` value for a new PO file.

    With ``count`` given, the locale rule is used only when it has that
    many forms; otherwise only the number of forms is known and the
    expression defaults to 0. This also covers locales without a
    built-in rule.
    """
    if count is None:
        return _default_forms(locale).to_header()
    rule_name = _rule_name(locale)
    if rule_name is not None and _RULES[rule_name][0] == count:
        return PluralForms(*_RULES[rule_name]).to_header()
    return PluralForms(count).to_header()


def plural_forms_from_headers(headers: list[str]) -> Optional[str]:
    """Value of the ``Plural-Forms`` header, if any."""
    return header_value(headers, "Plural-Forms")
