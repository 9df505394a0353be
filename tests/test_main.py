from __future__ import annotations

import pandas as pd
import pytest

from main import main


def test_prints_result(capsys):
    assert main(["3 4 + 2 *", "--type", "int32"]) == 0

    assert capsys.readouterr().out.strip() == "14"


def test_named_params(capsys):
    assert main(["x y -", "--type", "int64", "--param", "x=10", "--param", "y=4"]) == 0

    assert capsys.readouterr().out.strip() == "6"


def test_positional_values(capsys):
    assert main(["0 1 *", "--type", "uint16", "--values", "2", "3"]) == 0

    assert capsys.readouterr().out.strip() == "6"


def test_unsigned_wraparound(capsys):
    assert main(["3 4 -", "--type", "uint32"]) == 0

    assert capsys.readouterr().out.strip() == "4294967295"


def test_evaluation_errors_exit_with_one():
    assert main(["1 0 /", "--type", "int32"]) == 1
    assert main(["1 2", "--type", "int32"]) == 1
    assert main(["1 x +", "--type", "int32"]) == 1
    assert main(["x", "--type", "int32", "--param", "x=1", "--param", "x=2"]) == 1
    assert main(["0", "--type", "int32", "--values", "abc"]) == 1


def test_usage_errors_exit_with_two():
    with pytest.raises(SystemExit) as excinfo:
        main(["1", "--type", "int8"])
    assert excinfo.value.code == 2

    with pytest.raises(SystemExit) as excinfo:
        main(["1", "--param", "novalue"])
    assert excinfo.value.code == 2

    with pytest.raises(SystemExit) as excinfo:
        main(["1", "--output", "out.csv"])
    assert excinfo.value.code == 2


def test_check_only(capsys):
    assert main(["a b +", "--check"]) == 0
    assert capsys.readouterr().out.strip() == "ok"

    assert main(["a +", "--check"]) == 1


def test_batch_over_csv(tmp_path, capsys):
    data_path = tmp_path / "data.csv"
    pd.DataFrame({"a": [1, 2], "b": [3, 4]}).to_csv(data_path, index=False)

    assert main(["a b +", "--type", "int32", "--data", str(data_path)]) == 0

    assert capsys.readouterr().out.split() == ["4", "6"]


def test_batch_output_file(tmp_path):
    data_path = tmp_path / "data.csv"
    output_path = tmp_path / "out.csv"
    pd.DataFrame({"a": [1, 2], "b": [3, 4]}).to_csv(data_path, index=False)

    assert main(["a b *", "--type", "int64", "--data", str(data_path),
                 "--output", str(output_path)]) == 0

    saved = pd.read_csv(output_path)
    assert list(saved.columns) == ["a", "b", "a b *"]
    assert list(saved["a b *"]) == [3, 8]


def test_missing_data_file(tmp_path):
    assert main(["a", "--data", str(tmp_path / "missing.csv")]) == 1
