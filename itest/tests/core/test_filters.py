"""Unit tests for filter expression parsing and evaluation."""

import pytest

from itest.core.errors import InvalidFilterError
from itest.core.filters import (
    conjunction,
    escape_value,
    objectclass_term,
    parse_filter,
)
from itest.core.models import CapabilityQuery


@pytest.fixture
def properties() -> dict:
    """Properties of a sample registered component."""
    return {
        "objectclass": ["example.Greeter", "example.Service"],
        "service.id": 7,
        "service.ranking": 10,
        "Language": "en-GB",
        "enabled": True,
        "weight": 2.5,
        "description": "Greets people politely",
    }


class TestMatching:
    """Filters evaluate against component properties."""

    @pytest.mark.parametrize(
        "expression",
        [
            "(objectclass=example.Greeter)",
            "(language=en-GB)",
            "(LANGUAGE=en-GB)",
            "(language=en*)",
            "(language=*GB)",
            "(description=Greets*polite*)",
            "(language=*)",
            "(service.ranking>=10)",
            "(service.ranking<=10)",
            "(service.id=7)",
            "(enabled=true)",
            "(weight>=2)",
            "(language~=EN-gb)",
            "(&(objectclass=example.Greeter)(language=en*))",
            "(|(language=fr)(language=en-GB))",
            "(!(language=fr))",
            "(&(objectclass=example.Service)(!(enabled=false)))",
        ],
    )
    def test_matching_expressions(self, properties: dict, expression: str) -> None:
        assert parse_filter(expression).matches(properties)

    @pytest.mark.parametrize(
        "expression",
        [
            "(objectclass=example.Clock)",
            "(language=fr)",
            "(language=en)",
            "(missing=*)",
            "(service.ranking>=11)",
            "(service.id=seven)",
            "(enabled=false)",
            "(description=*rudely*)",
            "(&(language=en-GB)(enabled=false))",
            "(|(language=fr)(language=de))",
            "(!(language=en-GB))",
        ],
    )
    def test_non_matching_expressions(self, properties: dict, expression: str) -> None:
        assert not parse_filter(expression).matches(properties)

    def test_escaped_wildcard_is_literal(self) -> None:
        node = parse_filter(r"(name=a\*b)")
        assert node.matches({"name": "a*b"})
        assert not node.matches({"name": "axxb"})

    def test_whitespace_between_terms(self, properties: dict) -> None:
        node = parse_filter(" (& (language=en-GB) (enabled=true) ) ")
        assert node.matches(properties)

    def test_filter_text_is_preserved(self) -> None:
        assert str(parse_filter("(&(a=1)(b=2))")) == "(&(a=1)(b=2))"


class TestParsingErrors:
    """Malformed expressions raise InvalidFilterError."""

    @pytest.mark.parametrize(
        "expression",
        [
            "",
            "   ",
            "language=en",
            "(language=en",
            "(=en)",
            "(language)",
            "(&)",
            "(language=en))",
            "(language>=en*)",
            "(language=(en))",
            "(!)",
        ],
    )
    def test_rejected(self, expression: str) -> None:
        with pytest.raises(InvalidFilterError):
            parse_filter(expression)

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError) as excinfo:
            parse_filter("(broken")
        assert "(broken" in str(excinfo.value)


class TestConstruction:
    """Building subscription filters from queries."""

    def test_objectclass_term_escapes_specials(self) -> None:
        assert objectclass_term("pkg.Outer(1)") == r"(objectclass=pkg.Outer\(1\))"
        assert escape_value("a*b\\c") == r"a\*b\\c"

    def test_conjunction_of_one_term_is_the_term(self) -> None:
        assert conjunction("(a=1)") == "(a=1)"
        assert conjunction("(a=1)", "(b=2)") == "(&(a=1)(b=2))"

    def test_query_filter_combines_type_and_predicate(self) -> None:
        query = CapabilityQuery(dict, "(size=3)")
        assert query.to_filter() == "(&(objectclass=builtins.dict)(size=3))"
        assert parse_filter(query.to_filter()).matches(
            {"objectclass": ["builtins.dict"], "size": 3}
        )

    def test_query_without_predicate_uses_type_term(self) -> None:
        assert CapabilityQuery(dict).to_filter() == "(objectclass=builtins.dict)"

    def test_locally_defined_type_round_trips(self) -> None:
        class Local:
            pass

        query = CapabilityQuery(Local)
        node = parse_filter(query.to_filter())
        assert node.matches({"objectclass": [query.type_name]})
