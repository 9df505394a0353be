"""RPN表达式求值器 - 栈式求值，数值运算委托给 NumericOps"""
import logging

from config.config import EVALUATOR_CONFIG
from core.errors import MalformedExpressionError
from core.numeric_ops import get_numeric_ops
from core.param_binder import bind_params
from core.token_system import Token, tokenize

logger = logging.getLogger(__name__)


class RPNEvaluator:
    """评估RPN表达式的值（数值类型在构造时固定）"""

    def __init__(self, numeric_type=None):
        """
        Args:
            numeric_type: 数值类型，默认取 EVALUATOR_CONFIG['default_numeric_type']
        Raises:
            UnsupportedTypeError: 类型不在允许集合中
        """
        if numeric_type is None:
            numeric_type = EVALUATOR_CONFIG['default_numeric_type']
        self.ops = get_numeric_ops(numeric_type)

    @property
    def numeric_type(self):
        return self.ops.name

    def calculate(self, expression, *params):
        """
        计算RPN表达式
        Args:
            expression: 以空格分隔的RPN表达式
            params: 替换参数，可以是 (键, 值) 对、对的集合/映射，或按位置的数值/数值集合
        Returns:
            结果数值
        """
        substitutions = bind_params(params, self.ops) if params else None
        return self.evaluate(expression, substitutions)

    def evaluate(self, expression, substitutions=None):
        """
        栈式求值：数值入栈；操作符先弹出右操作数，再弹出左操作数
        Args:
            expression: RPN表达式字符串
            substitutions: 可选的 {Token字符串: 数值} 映射
        Returns:
            结果数值
        """
        stack = []

        for position, text in enumerate(tokenize(expression)):
            token = Token.from_string(text, self.ops, substitutions)

            if not token.is_operator:
                stack.append(token)
                continue

            if len(stack) < 2:
                logger.debug(f"Insufficient operands for '{text}' at token {position}")
                raise MalformedExpressionError(
                    f"Insufficient operands for '{text}' at token {position}"
                )
            second = stack.pop()
            first = stack.pop()
            stack.append(token.operate(first.value, second.value))

        if len(stack) != 1:
            logger.debug(f"Stack has {len(stack)} elements after evaluation: {expression!r}")
            raise MalformedExpressionError(
                f"Stack has {len(stack)} elements after evaluation, expected 1"
            )
        return stack[0].value


def calculate(expression, *params, numeric_type=None):
    """便捷入口：按 numeric_type 构建求值器并计算"""
    return RPNEvaluator(numeric_type).calculate(expression, *params)
