"""Tests for expression and condition evaluation."""

import math

import pytest

from conftest import ManualTime, make_evaluator

from sketchsim.model.expressions import ArithmeticExpr, LiteralExpr
from sketchsim.simulate import PinManager, SimulationClock, SimulationError, evaluate_arithmetic


# ---------------------------------------------------------------------------
# Restricted arithmetic
# ---------------------------------------------------------------------------

class TestEvaluateArithmetic:
    def test_precedence_and_parens(self):
        assert evaluate_arithmetic("2 + 3 * 4") == 14
        assert evaluate_arithmetic("(2 + 3) * 4") == 20

    def test_division_is_float(self):
        assert evaluate_arithmetic("7 / 2") == 3.5
        assert evaluate_arithmetic("8 / 2") == 4

    def test_remainder_sign(self):
        assert evaluate_arithmetic("-7 % 3") == -1

    def test_unary(self):
        assert evaluate_arithmetic("-(3 - 5)") == 2

    def test_rejects_power(self):
        with pytest.raises(SimulationError):
            evaluate_arithmetic("2 ** 3")

    def test_rejects_names(self):
        with pytest.raises(SimulationError):
            evaluate_arithmetic("x + 1")


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

class TestEvaluateExpression:
    def test_keywords_and_literals(self):
        ev = make_evaluator()
        assert ev.evaluate_expression("HIGH") == 1
        assert ev.evaluate_expression("INPUT_PULLUP") == "INPUT_PULLUP"
        assert ev.evaluate_expression("0x0A") == 10
        assert ev.evaluate_expression('"text"') == "text"

    def test_node_input(self):
        assert make_evaluator().evaluate_expression(LiteralExpr(value=3)) == 3

    def test_map(self):
        assert make_evaluator().evaluate_expression("map(512, 0, 1023, 0, 100)") == 50

    def test_builtins_with_variables(self):
        ev = make_evaluator({"raw": 300})
        assert ev.evaluate_expression("constrain(raw, 0, 255)") == 255
        assert ev.evaluate_expression("max(raw, 500)") == 500
        assert ev.evaluate_expression("isnan(sqrt(-1))") == 1

    def test_random_range(self):
        ev = make_evaluator()
        for _ in range(50):
            assert 3 <= ev.evaluate_expression("random(3, 6)") < 6

    def test_scope_lookup_prefers_locals(self):
        ev = make_evaluator({"x": 1})
        assert ev.evaluate_expression("x") == 1
        assert ev.evaluate_expression("x", {"x": 9}) == 9

    def test_unknown_name_is_zero(self):
        assert make_evaluator().evaluate_expression("missing") == 0

    def test_arithmetic_substitution(self):
        ev = make_evaluator({"count": 4, "c": 100})
        assert ev.evaluate_expression("count * 2 + c") == 108

    def test_longest_name_substituted_first(self):
        ev = make_evaluator({"a": 1, "ab": 20})
        assert ev.evaluate_expression("ab + a") == 21

    def test_keyword_substitution(self):
        assert make_evaluator().evaluate_expression("HIGH + HIGH") == 2

    def test_locals_override_globals_in_arithmetic(self):
        ev = make_evaluator({"n": 1})
        assert ev.evaluate_expression("n + 1", {"n": 10}) == 11

    def test_float_values_substituted(self):
        ev = make_evaluator({"ratio": 0.5})
        assert ev.evaluate_expression("ratio * 4") == 2

    @pytest.mark.parametrize("text", [
        '"a" + "b"',
        "flag ? 1 : 2",
        "5 & 3",
        "name + 1",
        "1 +",
        "",
    ])
    def test_unsupported_is_zero(self, text):
        ev = make_evaluator({"flag": 1, "name": "abc"})
        assert ev.evaluate_expression(text) == 0

    def test_division_by_zero_is_infinite(self):
        assert make_evaluator({"z": 0}).evaluate_expression("5 / z") == math.inf

    def test_arithmetic_node_never_raises(self):
        assert make_evaluator().evaluate_expression(ArithmeticExpr(source="((((")) == 0


class TestPinAndTimeReads:
    def test_digital_read(self):
        pins = PinManager()
        pins.write_digital(4, 1)
        ev = make_evaluator({"BUTTON": 4}, pins=pins)
        assert ev.evaluate_expression("digitalRead(BUTTON)") == 1

    def test_analog_read(self):
        pins = PinManager()
        pins.set_analog_value(34, 2048)
        ev = make_evaluator(pins=pins)
        assert ev.evaluate_expression("analogRead(34)") == 2048
        assert ev.evaluate_expression("map(analogRead(34), 0, 4095, 0, 100)") == 50

    def test_unknown_pin_reads_zero(self):
        assert make_evaluator().evaluate_expression("analogRead(77)") == 0

    def test_millis_and_micros(self):
        now = ManualTime()
        clock = SimulationClock(time_source=now)
        clock.start()
        now.advance(1.25)
        ev = make_evaluator(clock=clock)
        assert ev.evaluate_expression("millis()") == 1250
        assert ev.evaluate_expression("micros()") == 1250000

    def test_time_without_clock(self):
        assert make_evaluator().evaluate_expression("millis()") == 0


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class TestEvaluateCondition:
    def test_comparisons(self):
        ev = make_evaluator({"x": 5})
        assert ev.evaluate_condition("x >= 5")
        assert ev.evaluate_condition("x <= 5")
        assert ev.evaluate_condition("x != 4")
        assert ev.evaluate_condition("x == 5")
        assert not ev.evaluate_condition("x > 5")
        assert not ev.evaluate_condition("x < 5")

    def test_loose_string_comparison(self):
        ev = make_evaluator({"mode": "OUTPUT"})
        assert ev.evaluate_condition('mode == "OUTPUT"')

    def test_and_or(self):
        ev = make_evaluator({"a": 1, "b": 0})
        assert not ev.evaluate_condition("a && b")
        assert ev.evaluate_condition("a || b")

    def test_and_binds_whole_expression(self):
        ev = make_evaluator({"a": 1, "b": 0, "c": 0})
        # Grouped as (a || b) && c
        assert not ev.evaluate_condition("a || b && c")

    def test_not(self):
        ev = make_evaluator({"done": 0})
        assert ev.evaluate_condition("!done")
        assert not ev.evaluate_condition("!!done")

    def test_truthiness(self):
        ev = make_evaluator({"s": "", "n": 2})
        assert not ev.evaluate_condition("s")
        assert ev.evaluate_condition("n")

    def test_arithmetic_operand(self):
        ev = make_evaluator({"counter": 10})
        assert ev.evaluate_condition("counter % 5 == 0")
