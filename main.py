"""主程序入口 - 在命令行中计算RPN表达式"""
import argparse
import logging
import sys

import pandas as pd

from config.config import EVALUATOR_CONFIG, FORMULA_CONFIG, LOGGING_CONFIG, validate_config
from core import SUPPORTED_TYPES, RPNError, RPNEvaluator, RPNValidator, TokenFormatError
from formula import FormulaEvaluator

logger = logging.getLogger(__name__)


def _key_value(text):
    """解析 --param 的 KEY=VALUE 形式（值保持字符串，按数值类型再解析）"""
    key, sep, value = text.partition('=')
    if not sep or not key or not value:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    return key, value


def _parse_value(ops, text):
    ok, value = ops.parse(text)
    if not ok:
        raise TokenFormatError(text, ops.name)
    return value


def build_parser():
    parser = argparse.ArgumentParser(description="Evaluate reverse Polish notation expressions")
    parser.add_argument(
        "expression",
        type=str,
        help="Space separated RPN expression, e.g. \"3 4 + 2 *\""
    )
    parser.add_argument(
        "--type",
        type=str,
        choices=SUPPORTED_TYPES,
        default=EVALUATOR_CONFIG["default_numeric_type"],
        help="Numeric type used for literals and arithmetic"
    )
    binding = parser.add_mutually_exclusive_group()
    binding.add_argument(
        "--param",
        type=_key_value,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Named substitution, may be repeated"
    )
    binding.add_argument(
        "--values",
        type=str,
        nargs="+",
        default=[],
        help="Positional substitutions referenced as 0, 1, 2, ..."
    )
    binding.add_argument(
        "--data",
        type=str,
        help="CSV file; the expression is evaluated once per row with columns as substitutions"
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Save the data with the result column appended to this CSV file (requires --data)"
    )
    parser.add_argument(
        "--errors",
        choices=("raise", "coerce"),
        default=FORMULA_CONFIG["errors"],
        help="How failing rows are handled with --data"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check that operands and operators balance, do not evaluate"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def run(args):
    if args.check:
        RPNValidator.check(args.expression)
        print("ok")
        return 0

    if args.data:
        frame = pd.read_csv(args.data)
        logger.info(f"Loaded {len(frame)} rows from {args.data}")
        evaluator = FormulaEvaluator(args.type)
        if args.output:
            transformed = evaluator.evaluate_many([args.expression], frame, errors=args.errors)
            transformed.to_csv(args.output, index=False)
            logger.info(f"Results saved to {args.output}")
        else:
            result = evaluator.evaluate(args.expression, frame, errors=args.errors)
            print(result.to_string(index=False))
        return 0

    evaluator = RPNEvaluator(args.type)
    ops = evaluator.ops
    if args.param:
        params = [(key, _parse_value(ops, value)) for key, value in args.param]
    else:
        params = [_parse_value(ops, value) for value in args.values]

    if params:
        result = evaluator.calculate(args.expression, params)
    else:
        result = evaluator.calculate(args.expression)
    print(result)
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.output and not args.data:
        parser.error("--output requires --data")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOGGING_CONFIG["level"],
        format=LOGGING_CONFIG["format"]
    )
    validate_config()

    try:
        return run(args)
    except (RPNError, ArithmeticError, TypeError, ValueError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot read or write data: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
