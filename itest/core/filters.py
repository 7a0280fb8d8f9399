"""Filter expressions over component properties.

Filters use the parenthesized prefix syntax of dynamic module registries:

    (&(objectclass=example.Greeter)(language=en*)(!(deprecated=true)))

Supported operators are & (and), | (or), ! (not), and the comparisons
=, ~= (case-insensitive equality), >= and <=. A value of * tests for
presence and values containing * match as substrings. Keys are compared
case-insensitively. A list-valued property matches when any element does.
Backslash escapes the next character in a value.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import InvalidFilterError

OBJECTCLASS = "objectclass"
SERVICE_ID = "service.id"
SERVICE_RANKING = "service.ranking"


def escape_value(value: str) -> str:
    """Escape characters that carry meaning inside a filter value."""
    return "".join(f"\\{char}" if char in "()*\\" else char for char in value)


def objectclass_term(type_name: str) -> str:
    """Return the term matching components registered under type_name."""
    return f"({OBJECTCLASS}={escape_value(type_name)})"


def conjunction(*terms: str) -> str:
    """AND the given parenthesized terms together."""
    if len(terms) == 1:
        return terms[0]
    return "(&" + "".join(terms) + ")"


@dataclass(frozen=True)
class Filter:
    """A parsed filter node."""

    operator: str  # "&", "|", "!", "=", "~=", ">=", "<=", "present", "substring"
    key: str = ""
    value: Any = None
    children: tuple["Filter", ...] = ()
    text: str = ""

    def matches(self, properties: Mapping[str, Any]) -> bool:
        """Evaluate this filter against a property mapping."""
        if self.operator == "&":
            return all(child.matches(properties) for child in self.children)
        if self.operator == "|":
            return any(child.matches(properties) for child in self.children)
        if self.operator == "!":
            return not self.children[0].matches(properties)

        found, actual = _lookup(properties, self.key)
        if not found:
            return False
        if self.operator == "present":
            return True

        candidates = actual if isinstance(actual, (list, tuple, set, frozenset)) else [actual]
        return any(self._compare(candidate) for candidate in candidates)

    def _compare(self, actual: Any) -> bool:
        if self.operator == "substring":
            return _match_substring(str(actual), self.value)

        if self.operator == "~=":
            return _normalize(str(actual)) == _normalize(self.value)
        expected = _coerce(self.value, actual)
        if expected is None:
            return self.operator == "=" and str(actual) == self.value
        if self.operator == "=":
            return actual == expected
        try:
            if self.operator == ">=":
                return actual >= expected
            if self.operator == "<=":
                return actual <= expected
        except TypeError:
            return False
        return False

    def __str__(self) -> str:
        return self.text


def _lookup(properties: Mapping[str, Any], key: str) -> tuple[bool, Any]:
    lowered = key.lower()
    for name, value in properties.items():
        if name.lower() == lowered:
            return True, value
    return False, None


def _normalize(value: str) -> str:
    return "".join(value.split()).lower()


def _coerce(value: str, actual: Any) -> Any:
    """Convert a filter value to the type of the property being compared."""
    if isinstance(actual, bool):
        lowered = value.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return None
    if isinstance(actual, int):
        try:
            return int(value.strip())
        except ValueError:
            return None
    if isinstance(actual, float):
        try:
            return float(value.strip())
        except ValueError:
            return None
    if isinstance(actual, str):
        return value
    return None


def _match_substring(actual: str, parts: tuple[str, ...]) -> bool:
    """Match actual against parts split on unescaped wildcards."""
    first, *middle, last = parts
    if not actual.startswith(first):
        return False
    position = len(first)
    for piece in middle:
        index = actual.find(piece, position)
        if index < 0:
            return False
        position = index + len(piece)
    return actual.endswith(last) and len(actual) - len(last) >= position


class _Parser:
    def __init__(self, expression: str):
        self.expression = expression
        self.position = 0

    def fail(self, reason: str) -> InvalidFilterError:
        return InvalidFilterError(self.expression, reason, self.position)

    def skip_spaces(self) -> None:
        while self.position < len(self.expression) and self.expression[self.position].isspace():
            self.position += 1

    def peek(self) -> str:
        if self.position >= len(self.expression):
            raise self.fail("unexpected end of filter")
        return self.expression[self.position]

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise self.fail(f"expected {char!r}, found {self.peek()!r}")
        self.position += 1

    def parse(self) -> Filter:
        self.skip_spaces()
        node = self.parse_filter()
        self.skip_spaces()
        if self.position != len(self.expression):
            raise self.fail("trailing characters after filter")
        return node

    def parse_filter(self) -> Filter:
        start = self.position
        self.expect("(")
        self.skip_spaces()
        char = self.peek()
        if char in "&|":
            self.position += 1
            children = self.parse_children()
            if not children:
                raise self.fail(f"{char} requires at least one operand")
            node = Filter(operator=char, children=children)
        elif char == "!":
            self.position += 1
            self.skip_spaces()
            node = Filter(operator="!", children=(self.parse_filter(),))
            self.skip_spaces()
        else:
            node = self.parse_item()
        self.expect(")")
        return Filter(
            operator=node.operator,
            key=node.key,
            value=node.value,
            children=node.children,
            text=self.expression[start:self.position],
        )

    def parse_children(self) -> tuple[Filter, ...]:
        children = []
        self.skip_spaces()
        while self.peek() == "(":
            children.append(self.parse_filter())
            self.skip_spaces()
        return tuple(children)

    def parse_item(self) -> Filter:
        key = self.parse_key()
        char = self.peek()
        if char == "=":
            self.position += 1
            operator = "="
        elif char in "~<>":
            self.position += 1
            self.expect("=")
            operator = char + "="
        else:
            raise self.fail(f"expected comparison operator, found {char!r}")

        pieces, wildcard = self.parse_value()
        if operator != "=" and wildcard:
            raise self.fail(f"wildcards are not allowed with {operator}")
        if operator == "=" and wildcard:
            if pieces == ("", ""):
                return Filter(operator="present", key=key)
            return Filter(operator="substring", key=key, value=pieces)
        return Filter(operator=operator, key=key, value=pieces[0])

    def parse_key(self) -> str:
        start = self.position
        while self.peek() not in "=<>~()":
            self.position += 1
        key = self.expression[start:self.position].strip()
        if not key:
            raise self.fail("missing attribute name")
        return key

    def parse_value(self) -> tuple[tuple[str, ...], bool]:
        pieces: list[str] = []
        current: list[str] = []
        wildcard = False
        while True:
            char = self.peek()
            if char == ")":
                break
            if char == "(":
                raise self.fail("unescaped '(' in value")
            if char == "\\":
                self.position += 1
                current.append(self.peek())
            elif char == "*":
                wildcard = True
                pieces.append("".join(current))
                current = []
            else:
                current.append(char)
            self.position += 1
        pieces.append("".join(current))
        return tuple(pieces), wildcard


def parse_filter(expression: str) -> Filter:
    """Parse a filter expression.

    Args:
        expression: Parenthesized filter text.

    Returns:
        The parsed Filter tree.

    Raises:
        InvalidFilterError: If the expression is malformed.
    """
    if not isinstance(expression, str) or not expression.strip():
        raise InvalidFilterError(str(expression), "filter must be a non-empty string")
    return _Parser(expression).parse()
