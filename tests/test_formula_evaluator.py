from __future__ import annotations

import decimal
import logging

import numpy as np
import pandas as pd
import pytest

from core import DuplicateKeyError, MalformedExpressionError, Token, TokenFormatError
from formula import FormulaEvaluator


@pytest.fixture
def frame():
    return pd.DataFrame(
        {"price": [10, 20, 30], "qty": [1, 2, 0]},
        index=["a", "b", "c"],
    )


def test_evaluates_each_row_with_columns_as_substitutions(frame):
    evaluator = FormulaEvaluator("int32")

    result = evaluator.evaluate("price qty *", frame)

    assert list(result) == [10, 40, 0]
    assert list(result.index) == ["a", "b", "c"]
    assert result.dtype == np.int32
    assert result.name == "price qty *"


def test_accepts_dict_of_columns():
    evaluator = FormulaEvaluator("float64")

    result = evaluator.evaluate("x y /", {"x": [1.0, 3.0], "y": [2.0, 4.0]})

    assert list(result) == [0.5, 0.75]


def test_literals_and_integer_column_names():
    evaluator = FormulaEvaluator("int64")
    data = pd.DataFrame([[1, 2], [3, 4]])

    result = evaluator.evaluate("0 1 + 10 *", data)

    assert list(result) == [30, 70]


def test_column_name_takes_precedence_over_literal():
    evaluator = FormulaEvaluator("int32")

    result = evaluator.evaluate("2 2 +", {"2": [5, 6]})

    assert list(result) == [10, 12]


def test_row_errors_raise_by_default(frame):
    evaluator = FormulaEvaluator("int32")

    with pytest.raises(ZeroDivisionError):
        evaluator.evaluate("price qty /", frame)


def test_row_errors_can_be_coerced(frame, caplog):
    evaluator = FormulaEvaluator("int32")

    with caplog.at_level(logging.WARNING):
        result = evaluator.evaluate("price qty /", frame, errors="coerce")

    assert list(result) == [10, 10, None]
    assert result.dtype == object
    assert "ZeroDivisionError" in caplog.text


def test_float_rows_follow_ieee(frame):
    evaluator = FormulaEvaluator("float64")

    result = evaluator.evaluate("price qty /", frame)

    assert result["c"] == np.inf


def test_decimal_results_are_object_series():
    evaluator = FormulaEvaluator(decimal.Decimal)

    result = evaluator.evaluate("x 0.1 +", {"x": [1, 2]})

    assert result.dtype == object
    assert list(result) == [decimal.Decimal("1.1"), decimal.Decimal("2.1")]


def test_malformed_formula_fails_before_rows():
    evaluator = FormulaEvaluator("int32")

    with pytest.raises(MalformedExpressionError):
        evaluator.evaluate("price +", pd.DataFrame({"price": []}))


def test_unknown_token_fails_even_in_coerce_mode(frame):
    evaluator = FormulaEvaluator("int32")

    with pytest.raises(TokenFormatError):
        evaluator.evaluate("price volume +", frame, errors="coerce")


def test_invalid_errors_argument(frame):
    with pytest.raises(ValueError):
        FormulaEvaluator("int32").evaluate("price", frame, errors="ignore")


def test_unsupported_data_type():
    with pytest.raises(TypeError):
        FormulaEvaluator("int32").evaluate("1", [1, 2, 3])


def test_compiled_formulas_are_cached(frame):
    evaluator = FormulaEvaluator("int32")

    evaluator.evaluate("price qty +", frame)
    evaluator.evaluate("price qty +", frame)
    evaluator.evaluate("price 1 +", frame)

    assert evaluator.cache_info() == {"hits": 1, "misses": 2, "size": 2}


def test_cache_is_bounded(frame):
    evaluator = FormulaEvaluator("int32", cache_size=2)

    for formula in ["price 1 +", "price 2 +", "price 3 +"]:
        evaluator.evaluate(formula, frame)
    evaluator.evaluate("price 1 +", frame)

    assert evaluator.cache_info() == {"hits": 0, "misses": 4, "size": 2}


def test_clear_cache_resets_statistics(frame, caplog):
    evaluator = FormulaEvaluator("int32")
    evaluator.evaluate("price qty +", frame)

    with caplog.at_level(logging.INFO):
        evaluator.clear_cache()

    assert evaluator.cache_info() == {"hits": 0, "misses": 0, "size": 0}
    assert "Cache cleared" in caplog.text


def test_evaluate_many_appends_one_column_per_formula(frame):
    evaluator = FormulaEvaluator("int32")

    transformed = evaluator.evaluate_many(["price qty +", "price 2 *"], frame)

    assert list(transformed.columns) == ["price", "qty", "price qty +", "price 2 *"]
    assert list(transformed["price 2 *"]) == [20, 40, 60]
    assert list(frame.columns) == ["price", "qty"]


def test_columns_with_the_same_key_are_rejected():
    evaluator = FormulaEvaluator("int32")

    with pytest.raises(DuplicateKeyError) as excinfo:
        evaluator.evaluate("1", pd.DataFrame([[1, 2]], columns=[1, "1"]))

    assert excinfo.value.key == "1"


def test_tokens_are_rebuilt_for_every_call(frame, monkeypatch):
    evaluator = FormulaEvaluator("int32")
    built = []
    original = evaluator._build_tokens

    def record(plan):
        tokens = original(plan)
        built.append(tokens)
        return tokens

    monkeypatch.setattr(evaluator, "_build_tokens", record)
    evaluator.evaluate("price 1 +", frame)
    evaluator.evaluate("price 1 +", frame)

    assert evaluator.cache_info()["hits"] == 1
    first_tokens = [payload for kind, payload in built[0] if kind != "column"]
    second_tokens = [payload for kind, payload in built[1] if kind != "column"]
    assert all(a is not b for a, b in zip(first_tokens, second_tokens))
    assert not any(isinstance(payload, Token)
                   for plan in evaluator._compiled_cache.values() for _, payload in plan)
