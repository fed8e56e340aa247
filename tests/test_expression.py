"""Tests for the AND/OR expression builder."""

import pytest

from chainsql import MISSING, Expression, expr, select


def test_and_chain():
    sql = expr().and_("a=?", [123]).and_({"b": 456}).and_({"c": {"$in": [789]}}).build()
    assert sql == "(a=123 AND `b`=456 AND `c` IN (789))"


def test_or_chain():
    sql = expr().or_("a=?", [123]).or_({"b": 456}).or_({"c": {"$in": [789]}}).build()
    assert sql == "(a=123 OR `b`=456 OR `c` IN (789))"


def test_mixed_chain_with_named_values():
    sql = expr().and_("a=?", [123]).or_({"b": 456}).and_({"c": {"$in": [789]}}).or_("d=:d", {"d": 666}).build()
    assert sql == "(a=123 OR `b`=456 AND `c` IN (789) OR d=666)"


def test_mapping_with_several_keys_is_joined_with_and():
    assert expr().or_({"a": 1, "b": 2}).or_("c=3").build() == "(`a`=1 AND `b`=2 OR c=3)"


def test_nested_expression():
    inner = expr().or_("a=1").or_("b=2")
    assert expr().and_("c=3").and_(inner).build() == "(c=3 AND (a=1 OR b=2))"


def test_expression_in_query():
    sql = (
        select("*")
        .from_("test")
        .where(expr().and_("a=?", [123]).or_({"b": 456}).and_({"c": {"$in": [789]}}).or_("d=:d", {"d": 666}))
        .and_(expr().format("x=? AND y=? AND z=?", ["a", "b", "c"]))
        .build()
    )
    assert sql == "SELECT * FROM `test` WHERE (a=123 OR `b`=456 AND `c` IN (789) OR d=666) AND x='a' AND y='b' AND z='c'"


def test_build_is_repeatable():
    e = expr().and_("a=1")
    assert e.build() == e.build() == "(a=1)"


def test_empty_expression_cannot_build():
    with pytest.raises(ValueError, match="Expression cannot be empty"):
        Expression().build()


@pytest.mark.parametrize("condition", [None, "", "   ", {}])
def test_missing_condition(condition):
    with pytest.raises(ValueError, match="Missing condition"):
        expr().and_(condition)


def test_condition_type_is_checked():
    with pytest.raises(TypeError):
        expr().and_(5)


def test_undefined_values_are_rejected():
    with pytest.raises(ValueError, match="condition keys b"):
        expr().and_({"a": 1, "b": MISSING})
