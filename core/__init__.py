"""核心模块 - 数值运算、Token系统、参数绑定和RPN求值器"""
from .errors import (
    RPNError, UnsupportedTypeError, TokenFormatError,
    MalformedExpressionError, DuplicateKeyError
)
from .numeric_ops import NumericOps, SUPPORTED_TYPES, get_numeric_ops
from .token_system import TokenType, Token, OPERATOR_DEFINITIONS, RPNValidator, tokenize
from .param_binder import bind_params
from .rpn_evaluator import RPNEvaluator, calculate

__all__ = [
    'RPNError', 'UnsupportedTypeError', 'TokenFormatError',
    'MalformedExpressionError', 'DuplicateKeyError',
    'NumericOps', 'SUPPORTED_TYPES', 'get_numeric_ops',
    'TokenType', 'Token', 'OPERATOR_DEFINITIONS', 'RPNValidator', 'tokenize',
    'bind_params', 'RPNEvaluator', 'calculate'
]
