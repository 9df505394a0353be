"""core/token_system.py"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config.config import EVALUATOR_CONFIG
from core.errors import MalformedExpressionError, TokenFormatError


class TokenType(Enum):
    OPERAND = "operand"  # 数值（字面量或替换值）
    OPERATOR = "operator"  # 操作符


# 操作符符号 -> NumericOps 方法名（均为二元）
OPERATOR_DEFINITIONS = {
    '+': 'add',
    '-': 'subtract',
    '*': 'multiply',
    '/': 'divide',
}


def tokenize(expression: str, separator: Optional[str] = None) -> List[str]:
    """按空格切分表达式，丢弃空片段（连续空格视为一个），保持顺序"""
    separator = separator or EVALUATOR_CONFIG['token_separator']
    return [part for part in expression.split(separator) if part]


@dataclass(frozen=True)
class Token:
    type: TokenType
    symbol: Optional[str] = None
    value: Any = None
    operation: Optional[Callable] = field(default=None, compare=False, repr=False)

    @property
    def is_operator(self):
        return self.type == TokenType.OPERATOR

    @classmethod
    def literal(cls, value):
        return cls(TokenType.OPERAND, value=value)

    @classmethod
    def from_string(cls, text: str, ops, substitutions: Optional[Dict[str, Any]] = None) -> 'Token':
        """
        将一个原始Token字符串分类为操作符或数值
        顺序：操作符 -> 替换键 -> 数值解析 -> TokenFormatError
        Args:
            text: Token字符串
            ops: NumericOps
            substitutions: 可选的替换映射
        """
        method_name = OPERATOR_DEFINITIONS.get(text)
        if method_name is not None:
            return cls(TokenType.OPERATOR, symbol=text, operation=getattr(ops, method_name))

        if substitutions is not None and text in substitutions:
            return cls.literal(substitutions[text])

        ok, value = ops.parse(text)
        if ok:
            return cls.literal(value)

        raise TokenFormatError(text, ops.name)

    def operate(self, first, second) -> 'Token':
        """
        对 (first, second) 执行该操作符并返回新的数值Token
        注意参数顺序：first 是左操作数。从栈中弹出时，先弹出的是 second。
        """
        if not self.is_operator:
            raise TypeError(f"operate() requires an operator token, got {self!r}")
        return Token.literal(self.operation(first, second))


class RPNValidator:
    """只看Token字符串的静态栈深度检查，不做数值运算"""

    @staticmethod
    def calculate_stack_size(token_names) -> Optional[int]:
        """计算整个序列处理完后栈中的元素数量；中途下溢时返回 None"""
        stack_size = 0
        for name in token_names:
            if name in OPERATOR_DEFINITIONS:
                if stack_size < 2:
                    return None
                stack_size -= 1
            else:
                stack_size += 1
        return stack_size

    @staticmethod
    def is_complete_expression(expression: str) -> bool:
        return RPNValidator.calculate_stack_size(tokenize(expression)) == 1

    @staticmethod
    def check(expression: str):
        """不完整时抛出 MalformedExpressionError"""
        token_names = tokenize(expression)
        stack_size = 0
        for position, name in enumerate(token_names):
            if name in OPERATOR_DEFINITIONS:
                if stack_size < 2:
                    raise MalformedExpressionError(
                        f"Insufficient operands for '{name}' at token {position}"
                    )
                stack_size -= 1
            else:
                stack_size += 1
        if stack_size != 1:
            raise MalformedExpressionError(
                f"Stack has {stack_size} elements after evaluation, expected 1"
            )
