"""Tests for sketch parsing: expressions, conditions, statements, whole files."""

import textwrap

import pytest

from sketchsim.model.expressions import (
    AllOf,
    AnyOf,
    ArithmeticExpr,
    BuiltinCallExpr,
    CompareOp,
    Comparison,
    LiteralExpr,
    NotCondition,
    PinRead,
    PinReadExpr,
    TimeExpr,
    TimeUnit,
    Truthy,
    VariableRef,
)
from sketchsim.model.statements import (
    AnalogWrite,
    Assignment,
    AssignOp,
    CallStatement,
    DelayStatement,
    DigitalWrite,
    EmptyStatement,
    ForStatement,
    IfStatement,
    IncrementStatement,
    LedcWrite,
    NoToneStatement,
    PinModeStatement,
    SerialBegin,
    SerialPrint,
    SerialPrintf,
    ToneStatement,
    WhileStatement,
)
from sketchsim.parse import parse_block, parse_condition, parse_expression, parse_sketch, parse_statement


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

class TestParseExpression:
    def test_keywords(self):
        assert parse_expression("HIGH") == LiteralExpr(value=1)
        assert parse_expression("false") == LiteralExpr(value=0)
        assert parse_expression("OUTPUT") == LiteralExpr(value="OUTPUT")

    def test_numbers(self):
        assert parse_expression("42") == LiteralExpr(value=42)
        assert parse_expression("-3.5") == LiteralExpr(value=-3.5)
        assert parse_expression("0xFF") == LiteralExpr(value=255)

    def test_string_and_char_literals(self):
        assert parse_expression('"hi there"') == LiteralExpr(value="hi there")
        assert parse_expression("'A'") == LiteralExpr(value="A")

    def test_concatenation_is_arithmetic(self):
        assert parse_expression('"a" + "b"') == ArithmeticExpr(source='"a" + "b"')

    def test_time(self):
        assert parse_expression("millis()") == TimeExpr(unit=TimeUnit.MILLIS)
        assert parse_expression("micros( )") == TimeExpr(unit=TimeUnit.MICROS)

    def test_pin_reads(self):
        expr = parse_expression("analogRead(POT)")
        assert expr == PinReadExpr(read=PinRead.ANALOG, pin=VariableRef(name="POT"))
        assert parse_expression("digitalRead(4)").read == PinRead.DIGITAL

    def test_trailing_text_after_call_ignored(self):
        expr = parse_expression("analogRead(34) / 4")
        assert isinstance(expr, PinReadExpr)

    def test_builtin_call_with_nested_args(self):
        expr = parse_expression("map(analogRead(34), 0, 4095, 0, 100)")
        assert isinstance(expr, BuiltinCallExpr)
        assert expr.function_name == "map"
        assert len(expr.args) == 5
        assert isinstance(expr.args[0], PinReadExpr)

    def test_random_one_or_two_args(self):
        assert parse_expression("random(10)").function_name == "random"
        assert len(parse_expression("random(5, 10)").args) == 2

    def test_wrong_arity_falls_through(self):
        assert isinstance(parse_expression("map(1, 2)"), ArithmeticExpr)

    def test_identifier(self):
        assert parse_expression("  counter ") == VariableRef(name="counter")

    def test_arithmetic(self):
        assert parse_expression("x * 2 + 1") == ArithmeticExpr(source="x * 2 + 1")


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class TestParseCondition:
    def test_comparison(self):
        cond = parse_condition("x >= 10")
        assert cond == Comparison(
            op=CompareOp.GE,
            left=VariableRef(name="x"),
            right=LiteralExpr(value=10),
        )

    def test_priority_ge_before_gt(self):
        assert parse_condition("a > b").op == CompareOp.GT
        assert parse_condition("a != b").op == CompareOp.NE

    def test_and_split(self):
        cond = parse_condition("a > 1 && b < 2")
        assert isinstance(cond, AllOf)
        assert len(cond.operands) == 2

    def test_and_checked_before_or(self):
        cond = parse_condition("a || b && c")
        assert isinstance(cond, AllOf)
        assert isinstance(cond.operands[0], AnyOf)

    def test_not(self):
        cond = parse_condition("!digitalRead(4)")
        assert isinstance(cond, NotCondition)
        assert isinstance(cond.operand, Truthy)

    def test_truthy(self):
        assert parse_condition("running") == Truthy(value=VariableRef(name="running"))


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

class TestParseStatement:
    def test_delay(self):
        assert parse_statement("delay(500)") == DelayStatement(duration=LiteralExpr(value=500))

    def test_delay_microseconds(self):
        stmt = parse_statement("delayMicroseconds(20)")
        assert stmt.microseconds is True

    def test_serial_begin(self):
        assert isinstance(parse_statement("Serial.begin(115200)"), SerialBegin)

    def test_serial_println(self):
        stmt = parse_statement('Serial.println("Ready")')
        assert stmt == SerialPrint(value=LiteralExpr(value="Ready"), newline=True)

    def test_serial_println_empty(self):
        assert parse_statement("Serial.println()") == SerialPrint(value=LiteralExpr(value=""), newline=True)

    def test_serial_print_first_arg_only(self):
        stmt = parse_statement("Serial.print(x, HEX)")
        assert stmt == SerialPrint(value=VariableRef(name="x"))

    def test_serial_printf(self):
        stmt = parse_statement('Serial.printf("T=%.1f C\\n", temp)')
        assert isinstance(stmt, SerialPrintf)
        assert stmt.format == "T=%.1f C\\n"
        assert stmt.args == [VariableRef(name="temp")]

    def test_serial_printf_without_literal_format(self):
        assert isinstance(parse_statement("Serial.printf(fmt)"), EmptyStatement)

    def test_pin_statements(self):
        assert parse_statement("pinMode(LED, OUTPUT)") == PinModeStatement(
            pin=VariableRef(name="LED"), mode="OUTPUT",
        )
        assert isinstance(parse_statement("digitalWrite(2, HIGH)"), DigitalWrite)
        assert isinstance(parse_statement("analogWrite(5, 128)"), AnalogWrite)
        assert isinstance(parse_statement("ledcWrite(0, duty)"), LedcWrite)
        assert isinstance(parse_statement("noTone(9)"), NoToneStatement)

    def test_tone_optional_duration(self):
        tone = parse_statement("tone(9, 440)")
        assert isinstance(tone, ToneStatement)
        assert tone.duration is None
        assert parse_statement("tone(9, 440, 200)").duration == LiteralExpr(value=200)

    def test_missing_args_is_empty(self):
        assert isinstance(parse_statement("digitalWrite(2)"), EmptyStatement)

    def test_typed_assignment(self):
        stmt = parse_statement("unsigned long last = millis()")
        assert stmt == Assignment(target="last", value=TimeExpr(unit=TimeUnit.MILLIS))

    def test_compound_assignment(self):
        stmt = parse_statement("total += step")
        assert stmt.op == AssignOp.ADD

    def test_const_typed_assignment(self):
        assert parse_statement("const int limit = 3").target == "limit"

    def test_increment(self):
        assert parse_statement("count++") == IncrementStatement(target="count", delta=1)
        assert parse_statement("count--").delta == -1

    def test_user_call(self):
        stmt = parse_statement("blink(LED, 3)")
        assert stmt == CallStatement(
            function_name="blink",
            args=[VariableRef(name="LED"), LiteralExpr(value=3)],
        )

    def test_unknown_method_is_empty(self):
        assert isinstance(parse_statement("Wire.begin()"), EmptyStatement)

    def test_unmatched_text_is_empty(self):
        stmt = parse_statement("int values[4]")
        assert stmt == EmptyStatement(source="int values[4]")


class TestParseControlFlow:
    def test_if_else_chain(self):
        stmt = parse_statement("if (x > 5) {\ny = 1;\n} else if (x > 2) {\ny = 2;\n} else {\ny = 3;\n}")
        assert isinstance(stmt, IfStatement)
        assert len(stmt.branches) == 2
        assert stmt.else_body == [Assignment(target="y", value=LiteralExpr(value=3))]

    def test_if_nested_block(self):
        stmt = parse_statement("if (a) {\nif (b) {\nx = 1;\n}\ny = 2;\n}")
        body = stmt.branches[0].body
        assert isinstance(body[0], IfStatement)
        assert body[1] == Assignment(target="y", value=LiteralExpr(value=2))

    def test_if_without_braces_is_empty(self):
        assert isinstance(parse_statement("if (a) x = 1;"), EmptyStatement)

    @pytest.mark.parametrize("source", [
        "if (x > 5)\n  digitalWrite(2, HIGH);",
        "while (x < 3)\n  x++;",
        "for (i = 0; i < 3; i++)\n  x++;",
    ])
    def test_braceless_body_on_next_line_is_empty(self, source):
        body = parse_block(source + "\ny = 2;")
        assert isinstance(body[0], EmptyStatement)
        assert body[1] == Assignment(target="y", value=LiteralExpr(value=2))
        assert len(body) == 2

    def test_lone_else(self):
        stmt = parse_statement("else {\nx = 1;\n}")
        assert stmt.branches == []
        assert len(stmt.else_body) == 1

    def test_for(self):
        stmt = parse_statement("for (int i = 0; i < 5; i++) {\nx += 1;\n}")
        assert isinstance(stmt, ForStatement)
        assert stmt.init == Assignment(target="i", value=LiteralExpr(value=0))
        assert stmt.step == IncrementStatement(target="i", delta=1)
        assert stmt.body == [Assignment(target="x", op=AssignOp.ADD, value=LiteralExpr(value=1))]

    def test_for_with_call_in_condition(self):
        stmt = parse_statement("for (i = 0; i < max(a, b); i++) {\nn++;\n}")
        assert isinstance(stmt, ForStatement)
        assert isinstance(stmt.condition.right, BuiltinCallExpr)

    def test_for_missing_clause_is_empty(self):
        assert isinstance(parse_statement("for (;;) {\nn++;\n}"), EmptyStatement)

    def test_while(self):
        stmt = parse_statement("while (digitalRead(4) == LOW) {\ndelay(10);\n}")
        assert isinstance(stmt, WhileStatement)
        assert stmt.body == [DelayStatement(duration=LiteralExpr(value=10))]


# ---------------------------------------------------------------------------
# Whole sketches
# ---------------------------------------------------------------------------

SKETCH = textwrap.dedent("""\
    // Blink with a helper
    #define LED_PIN 2
    #define RATE 0x10
    const int LIMIT = 5;
    float ratio = 0.5;
    String name = "esp";
    int copy = LIMIT;
    int pending;

    void blink(int pin, int times) {
      for (int i = 0; i < times; i++) {
        digitalWrite(pin, HIGH);
      }
    }

    void setup() {
      /* configure
         pins */
      pinMode(LED_PIN, OUTPUT);
      int local = 3;
    }

    void loop() {
      blink(LED_PIN, 2);
      delay(RATE);
    }

    int readLevel(void) {
      analogRead(34);
    }
""")


class TestParseSketch:
    def test_globals(self):
        sketch = parse_sketch(SKETCH)
        assert sketch.globals == {
            "LED_PIN": 2,
            "RATE": 16,
            "LIMIT": 5,
            "ratio": 0.5,
            "name": "esp",
            "copy": 5,
            "pending": 0,
        }

    def test_declarations_inside_functions_are_not_globals(self):
        assert "local" not in parse_sketch(SKETCH).globals

    def test_setup_and_loop(self):
        sketch = parse_sketch(SKETCH)
        assert len(sketch.setup) == 2
        assert isinstance(sketch.setup[0], PinModeStatement)
        assert [s.kind for s in sketch.loop] == ["call", "delay"]

    def test_functions(self):
        sketch = parse_sketch(SKETCH)
        assert set(sketch.functions) == {"blink", "readLevel"}
        assert sketch.functions["blink"].params == ["pin", "times"]
        assert sketch.functions["readLevel"].params == []
        assert isinstance(sketch.functions["blink"].body[0], ForStatement)

    def test_missing_setup_and_loop(self):
        sketch = parse_sketch("int x = 1;")
        assert sketch.setup == []
        assert sketch.loop == []
        assert sketch.globals == {"x": 1}

    def test_malformed_source_does_not_raise(self):
        sketch = parse_sketch("void setup() { if (x { ")
        assert sketch.setup == []

    def test_empty_source(self):
        sketch = parse_sketch("")
        assert sketch.globals == {}
        assert sketch.functions == {}

    def test_reparse_is_independent(self):
        first = parse_sketch(SKETCH)
        second = parse_sketch(SKETCH)
        assert first == second
        assert first.globals is not second.globals
