"""core/errors.py - 计算器错误类型

算术错误（ZeroDivisionError / OverflowError / decimal 异常）直接沿用 Python 内置的
ArithmeticError 体系，不在此包装。
"""


class RPNError(Exception):
    """所有计算器错误的基类"""


class UnsupportedTypeError(RPNError, TypeError):
    """请求的数值类型不在允许的集合中"""

    def __init__(self, numeric_type):
        self.numeric_type = numeric_type
        super().__init__(f"Unsupported numeric type: {numeric_type!r}")


class TokenFormatError(RPNError, ValueError):
    """Token既不是操作符，也不是替换键或可解析的数值"""

    def __init__(self, token, type_name=None):
        self.token = token
        message = f"Unrecognized token: {token!r}"
        if type_name:
            message += f" (not a valid {type_name} literal)"
        super().__init__(message)


class MalformedExpressionError(RPNError, ValueError):
    """操作数与操作符数量不匹配（栈下溢或残留元素）"""


class DuplicateKeyError(RPNError, ValueError):
    """两个替换项使用了同一个键"""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Duplicate substitution key: {key!r}")
