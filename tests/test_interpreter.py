from typing import List

import pytest

from expr.expr_errors import ExprRuntimeError
from expr.expr_interpreter import Interpreter, LazyArray
from expr.expr_parser import parse
from expr.expr_scanner import scan

DATA = {
    "product_type": "面膜",
    "skin_color": "黑色",
    "age": 18,
    "efficacy": ["补水", "抗皱"],
    "ruok": True,
    "scores": [1, 2.5],
    "nothing": None,
}


def to_expr(src):
    return parse(scan(src))


@pytest.fixture
def interp():
    p = Interpreter()
    p.environment.define_function("ner_entities", lambda name: DATA[name])
    return p


@pytest.fixture
def counter(interp):
    state = {"count": 0}

    def call_counter() -> bool:
        state["count"] += 1
        return True

    interp.environment.define_function("call_counter", call_counter)
    return state


def assert_value(interp, src, expected):
    value, err = interp.interpret(to_expr(src))
    assert err is None, f"interpret {src!r} failed: {err}"
    assert value == expected
    assert type(value) is type(expected)


def assert_runtime_error(interp, src, fragment=None):
    value, err = interp.interpret(to_expr(src))
    assert value is None
    assert isinstance(err, ExprRuntimeError), f"expected a runtime error for {src!r}, got {err!r}"
    if fragment is not None:
        assert fragment in str(err)
    return err


@pytest.mark.parametrize(
    "src,expect",
    [
        ("1 == 1", True),
        ("1 != 1", False),
        ("1 != 2", True),
        ('"a" == "a"', True),
        ('"a" != "a"', False),
        ('"a" != "b"', True),
        ("true == true", True),
        ("true != false", True),
        ("0.5 == 0.50", True),
    ],
)
def test_equal(interp, src, expect):
    assert_value(interp, src, expect)


def test_call(interp):
    assert_value(interp, 'ner_entities("product_type") == "面膜"', True)
    assert_value(interp, 'ner_entities("skin_color") == "白色"', False)


@pytest.mark.parametrize(
    "src,expect",
    [
        ('ner_entities("age") == 18', True),
        ('ner_entities("age") >= 18', True),
        ('ner_entities("age") > 17', True),
        ('ner_entities("age") <= 18', True),
        ('ner_entities("age") < 19', True),
        ('ner_entities("age") > 18', False),
        ('ner_entities("age") != 18', False),
    ],
)
def test_comparison(interp, src, expect):
    assert_value(interp, src, expect)


@pytest.mark.parametrize(
    "src,expect",
    [
        ('ner_entities("efficacy") == ["补水", "抗皱"]', True),
        ('ner_entities("efficacy") == ["补水", "+皱"]', False),
        ('ner_entities("efficacy") != ["补水", "+皱"]', True),
        ('ner_entities("efficacy") == ["补水"]', False),
        ('ner_entities("efficacy") == ["补水", "抗皱", "补水"]', False),
        ('["a", "b"] == ["a", "b"]', True),
        ('["a", "b"] == ["a", "c"]', False),
        ('["a", "b"] == ["a"]', False),
        ("[] == []", True),
        ('ner_entities("scores") == [1, 2.5]', True),
        ('ner_entities("scores") == ["1", 2.5]', False),
        ('[[1, "x"], true] == [[1, "x"], true]', True),
        ('[[1, "x"], true] == [[1, "y"], true]', False),
        ('["a"] == "a"', False),
        ('"a" == ["a"]', False),
        ('[true] == [1]', False),
    ],
)
def test_array(interp, src, expect):
    assert_value(interp, src, expect)


def test_array_elements_are_evaluated_lazily(interp):
    seen = []

    def probe(tag: str) -> str:
        seen.append(tag)
        return tag

    interp.environment.define_function("probe", probe)
    assert_value(interp, '["a", "b", "c"] == [probe("x"), probe("b"), probe("c")]', False)
    # Comparison stops at the first mismatching position.
    assert seen == ["x"]

    seen.clear()
    assert_value(interp, '["a"] == [probe("a"), probe("b")]', False)
    # Length mismatch is decided before any element is evaluated.
    assert seen == []


def test_array_element_errors_propagate(interp):
    assert_runtime_error(interp, '["a"] == [missing]', "undefined symbol missing")


def test_standalone_array_is_materialized(interp):
    assert_value(interp, '[1, "a", [true]]', [1.0, "a", [True]])


def test_array_arguments_are_materialized_for_host_calls(interp):
    received = []

    def take(items: List[str]) -> int:
        received.append(items)
        return len(items)

    interp.environment.define_function("take", take)
    assert_value(interp, 'take(["x", ner_entities("product_type")]) == 2', True)
    assert received == [["x", "面膜"]]


def test_array_value_is_lazy_inside_evaluation(interp):
    value = interp.evaluate(to_expr('["a", missing]'))
    assert isinstance(value, LazyArray)
    assert len(value) == 2


@pytest.mark.parametrize(
    "src,expect",
    [
        ('ner_entities("ruok")', True),
        ('!ner_entities("ruok")', False),
        ('ner_entities("ruok") == true', True),
        ('ner_entities("ruok") != false', True),
        ("true or false", True),
        ("true and false", False),
        ("false or false", False),
        ("true and true", True),
    ],
)
def test_bool(interp, src, expect):
    assert_value(interp, src, expect)


@pytest.mark.parametrize(
    "src,expect",
    [
        ("true or (false or true)", True),
        ("false or (false and true)", False),
        ("(true)", True),
        ("((1)) == 1", True),
    ],
)
def test_grouping(interp, src, expect):
    assert_value(interp, src, expect)


@pytest.mark.parametrize(
    "src,expect",
    [
        ("!true", False),
        ("!false", True),
        ("!!true", True),
        ("-1 < 0", True),
        ("1 > 0", True),
        ("--1 == 1", True),
        ("-1", -1.0),
        ('-ner_entities("age") == -18', True),
    ],
)
def test_unary(interp, src, expect):
    assert_value(interp, src, expect)


@pytest.mark.parametrize(
    "src,expect,expect_counter",
    [
        ("true or call_counter()", True, 0),
        ("false or call_counter()", True, 1),
        ("true and call_counter()", True, 1),
        ("false and call_counter()", False, 0),
        ("call_counter() or call_counter()", True, 1),
        ("call_counter() and call_counter()", True, 2),
    ],
)
def test_logical_short_circuit(interp, counter, src, expect, expect_counter):
    assert_value(interp, src, expect)
    assert counter["count"] == expect_counter


def test_comparison_always_evaluates_both_sides(interp, counter):
    assert_value(interp, "call_counter() == call_counter()", True)
    assert counter["count"] == 2


@pytest.mark.parametrize(
    "src,fragment",
    [
        ('"a" > 1', "is not number"),
        ('1 > "a"', "is not number"),
        ('"a" > "b"', "is not number"),
        ('"a" == 1', "is not number"),
        ("true == 1", "is not number"),
        ("true < false", "is not number"),
        ('-"a"', "is not number"),
        ("-true", "is not number"),
        ("!1", "not bool value"),
        ('!"yes"', "not bool value"),
        ('1 and true', "not bool value"),
        ('true and "x"', "not bool value"),
        ('false or 1', "not bool value"),
        ('ner_entities("nothing") or true', "nil value"),
        ("unknown", "undefined symbol unknown"),
        ("unknown == 1", "undefined symbol unknown"),
        ('"f"()', "): not callable"),
        ('ner_entities("age")()', "): not callable"),
        ("ner_entities()", "): want 1 but got 0 arguments"),
    ],
)
def test_runtime_errors(interp, src, fragment):
    assert_runtime_error(interp, src, fragment)


def test_arity_mismatch_message(interp):
    interp.environment.define_function("zero", lambda: True)
    err = assert_runtime_error(interp, "zero(1)")
    assert "want 0 but got 1 arguments" in str(err)
    assert err.token.lexeme == ")"


def test_arguments_not_evaluated_on_arity_mismatch(interp, counter):
    interp.environment.define_function("zero", lambda: True)
    assert_runtime_error(interp, "zero(call_counter())", "want 0 but got 1 arguments")
    assert counter["count"] == 0


def test_undefined_symbol_names_identifier(interp):
    err = assert_runtime_error(interp, "no_such_field")
    assert "no_such_field" in str(err)


def test_runtime_error(interp):
    def die():
        raise Exception("die")

    interp.environment.define_function("die", die)
    err = assert_runtime_error(interp, "die()", "die")
    assert "die failed: Exception: die" in str(err)


def test_host_argument_conversion_failure(interp):
    called = []

    def half(n: int) -> bool:
        called.append(n)
        return True

    interp.environment.define_function("half", half)
    assert_value(interp, "half(2)", True)
    assert called == [2]
    assert_runtime_error(interp, "half(1.5)", "half argument[0] 1.5 (float) is not compatible for int")
    assert called == [2]


def test_host_function_returning_nothing_yields_nil(interp):
    interp.environment.define_function("noop", lambda: None)
    value, err = interp.interpret(to_expr("noop()"))
    assert err is None
    assert value is None


def test_unexpected_internal_fault_is_reported(interp):
    class Exploding:
        def __eq__(self, other):
            raise TypeError("incomparable")

    interp.environment.define("weird", Exploding())
    # An incomparable value is just unequal.
    assert_value(interp, '"x" == weird', False)

    from expr.expr_callable import ExprCallable

    class Broken(ExprCallable):
        def call(self, arguments):
            raise KeyError("internal")

        def arity(self):
            return 0

    interp.environment.define("broken", Broken())
    err = assert_runtime_error(interp, "broken()", "runtime err:")
    assert err.stack is not None
    assert "KeyError" in err.stack


@pytest.mark.parametrize("n", ["0", "1", "18", "3.25", "1000000", "0.001"])
def test_numeric_literal_equality_laws(interp, n):
    assert_value(interp, f"{n} == {n}", True)
    assert_value(interp, f"{n} != {n}", False)


@pytest.mark.parametrize("s", ["", "a", "面膜", "with space", "x'y"])
def test_string_literal_equality_law(interp, s):
    assert_value(interp, f'"{s}" == "{s}"', True)


def test_example_age_predicates():
    p = Interpreter()
    p.environment.define("age", 18)
    assert p.interpret(to_expr("age == 18")) == (True, None)
    assert p.interpret(to_expr("age >= 19")) == (False, None)
    assert p.interpret(to_expr("!(age == 18)")) == (False, None)


def test_ast_can_be_evaluated_repeatedly():
    p = Interpreter()
    expr = to_expr("age > 17 and name == \"x\"")
    p.environment.define("name", "x")
    for age, expected in [(18, True), (17, False), (30.5, True)]:
        p.environment.define("age", age)
        assert p.interpret(expr) == (expected, None)
