"""Tests for visibility rule evaluation."""

import pytest

from clear_signing import RenderError
from clear_signing.descriptor import VisibleCondition

from conftest import RECIPIENT


def condition(**kwargs):
    return VisibleCondition.model_validate(kwargs)


@pytest.fixture
def rules_descriptor(erc20_descriptor_data):
    erc20_descriptor_data["display"]["visibilityRules"] = {
        "hideZero": {"path": "amount", "ifNotIn": ["0"]},
        "alias": "hideZero",
        "loopA": "loopB",
        "loopB": "loopA",
        "hidden": False,
    }
    return erc20_descriptor_data


class TestLiteralRules:
    @pytest.mark.parametrize("rule,expected", [
        (None, True),
        (True, True),
        (False, False),
        ("always", True),
        ("optional", True),
        ("never", False),
    ])
    def test_literals(self, engine, make_context, rule, expected):
        assert engine.is_visible(make_context(), rule, "amount") is expected


class TestNamedRules:
    def test_named_condition(self, engine, make_context, rules_descriptor):
        assert engine.is_visible(make_context(rules_descriptor, args=(RECIPIENT, 1000)), "hideZero") is True
        assert engine.is_visible(make_context(rules_descriptor, args=(RECIPIENT, 0)), "hideZero") is False

    def test_chained_reference(self, engine, make_context, rules_descriptor):
        assert engine.is_visible(make_context(rules_descriptor, args=(RECIPIENT, 0)), "alias") is False
        assert engine.is_visible(make_context(rules_descriptor), "$.display.visibilityRules.hidden") is False

    def test_undefined_reference_fails(self, engine, make_context, rules_descriptor):
        with pytest.raises(RenderError):
            engine.is_visible(make_context(rules_descriptor), "noSuchRule", "amount")

    def test_undefined_reference_fails_without_rules_section(self, engine, make_context):
        with pytest.raises(RenderError):
            engine.is_visible(make_context(), "noSuchRule", "amount")

    def test_reference_cycle_fails(self, engine, make_context, rules_descriptor):
        with pytest.raises(RenderError):
            engine.is_visible(make_context(rules_descriptor), "loopA", "amount")


class TestConditions:
    def test_defaults_to_field_path(self, engine, make_context):
        ctx = make_context(args=(RECIPIENT, 1000))
        assert engine.is_visible(ctx, condition(ifNotIn=[1000]), "amount") is False
        assert engine.is_visible(ctx, condition(ifNotIn=[999]), "amount") is True

    def test_numeric_not_lexical_ordering(self, engine, make_context):
        ctx = make_context(args=(RECIPIENT, 1000))
        # "1000" sorts before "9" as text
        assert engine.is_visible(ctx, condition(gt="9"), "amount") is True
        assert engine.is_visible(ctx, condition(gte=1000, lte="0x3e8"), "amount") is True
        assert engine.is_visible(ctx, condition(lt=1000), "amount") is False

    def test_must_be(self, engine, make_context):
        ctx = make_context()
        assert engine.is_visible(ctx, condition(mustBe=["1000", "2000"]), "amount") is True
        assert engine.is_visible(ctx, condition(mustBe=[5]), "amount") is False

    def test_eq_and_ne(self, engine, make_context):
        ctx = make_context()
        assert engine.is_visible(ctx, condition(eq=1000), "amount") is True
        assert engine.is_visible(ctx, condition(ne=1000), "amount") is False

    def test_address_comparison_ignores_case(self, engine, make_context):
        ctx = make_context()
        rule = condition(path="to", ifNotIn=[RECIPIENT.upper().replace("0X", "0x")])
        assert engine.is_visible(ctx, rule, "amount") is False

    def test_condition_path_overrides_field_path(self, engine, make_context):
        ctx = make_context(args=(RECIPIENT, 0))
        assert engine.is_visible(ctx, condition(path="amount", ifNotIn=[0]), "to") is False

    def test_ordering_on_address_fails(self, engine, make_context):
        with pytest.raises(RenderError):
            engine.is_visible(make_context(), condition(gt="0x01"), "to")

    def test_bool_literal_against_integer_fails(self, engine, make_context):
        with pytest.raises(RenderError):
            engine.is_visible(make_context(), condition(eq=True), "amount")

    def test_unresolvable_path_fails(self, engine, make_context):
        with pytest.raises(RenderError):
            engine.is_visible(make_context(), condition(path="recipient", ifNotIn=[0]), "amount")
