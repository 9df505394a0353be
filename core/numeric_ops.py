"""core/numeric_ops.py - 按数值类型提供四则运算、字符串解析和数值转换"""
import decimal
import logging
import re
import threading

import numpy as np

from config.config import EVALUATOR_CONFIG
from core.errors import UnsupportedTypeError

logger = logging.getLogger(__name__)

# 允许参与RPN运算的数值类型（固定集合）
SUPPORTED_TYPES = (
    'int16', 'int32', 'int64',
    'uint16', 'uint32', 'uint64',
    'float32', 'float64',
    'decimal',
)

_INT_PATTERN = re.compile(r'[+-]?[0-9]+')
_REAL_PATTERN = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')
_FLOAT_SPECIAL_PATTERN = re.compile(r'[+-]?(?:inf|infinity|nan)', re.IGNORECASE)

# 每种类型只解析一次，之后只读
_OPS_CACHE = {}
_OPS_LOCK = threading.Lock()


class NumericOps:
    """某一数值类型的运算集合"""

    def __init__(self, name):
        self.name = name

    @property
    def zero(self):
        raise NotImplementedError

    def add(self, a, b):
        raise NotImplementedError

    def subtract(self, a, b):
        raise NotImplementedError

    def multiply(self, a, b):
        raise NotImplementedError

    def divide(self, a, b):
        raise NotImplementedError

    def parse(self, text):
        """
        将字符串解析为该类型的数值，失败时不抛异常
        Returns:
            (是否成功, 数值)；失败时数值为 zero
        """
        raise NotImplementedError

    def coerce(self, value):
        """将调用方传入的替换值转换为该类型"""
        raise NotImplementedError

    @staticmethod
    def _reject_text(value):
        if isinstance(value, (str, bytes)):
            raise TypeError(f"Substitution values must be numbers, got {value!r}")
        if isinstance(value, np.generic):
            return value.item()
        return value

    def __repr__(self):
        return f"{type(self).__name__}({self.name})"


class IntegerOps(NumericOps):
    """定宽整数：加减乘按位宽回绕，除法向零截断"""

    def __init__(self, dtype):
        super().__init__(dtype.name)
        self.scalar_type = dtype.type
        info = np.iinfo(dtype)
        self.min_value = int(info.min)
        self.max_value = int(info.max)
        self.max_digits = len(str(max(-self.min_value, self.max_value)))

    @property
    def zero(self):
        return self.scalar_type(0)

    def add(self, a, b):
        with np.errstate(all='ignore'):
            return a + b

    def subtract(self, a, b):
        with np.errstate(all='ignore'):
            return a - b

    def multiply(self, a, b):
        with np.errstate(all='ignore'):
            return a * b

    def divide(self, a, b):
        if b == 0:
            raise ZeroDivisionError(f"{self.name} division by zero")
        quotient = abs(int(a)) // abs(int(b))
        if (a < 0) != (b < 0):
            quotient = -quotient
        # MIN / -1 超出范围
        if not self.min_value <= quotient <= self.max_value:
            raise OverflowError(f"{self.name} division overflow: {a} / {b}")
        return self.scalar_type(quotient)

    def parse(self, text):
        text = text.strip()
        if not _INT_PATTERN.fullmatch(text):
            return False, self.zero
        # 先按位数排除超长数字，避免 int() 的位数上限
        if len(text.lstrip('+-').lstrip('0')) > self.max_digits:
            return False, self.zero
        value = int(text)
        if not self.min_value <= value <= self.max_value:
            return False, self.zero
        return True, self.scalar_type(value)

    def coerce(self, value):
        value = self._reject_text(value)
        # 带小数部分的值不能无损转换（NaN / inf 由 int() 本身报错）
        if isinstance(value, (float, decimal.Decimal)) and value != int(value):
            raise ValueError(f"Value {value} is not an integer, cannot convert to {self.name}")
        value = int(value)
        if not self.min_value <= value <= self.max_value:
            raise OverflowError(f"Value {value} is out of range for {self.name}")
        return self.scalar_type(value)


def _nearest_float32(text):
    """
    将十进制字符串就近舍入到 float32（偶数尾数优先）
    先转 double 再转 float32 会发生二次舍入，这里用十进制精确值在相邻的
    float32 候选中比较距离
    """
    candidate = np.float32(float(text))
    if not np.isfinite(candidate):
        return candidate

    context = decimal.Context(prec=len(text) + 200, Emax=decimal.MAX_EMAX, Emin=decimal.MIN_EMIN)
    exact = context.create_decimal(text)
    best, best_distance = candidate, None
    for neighbour in (np.nextafter(candidate, np.float32(-np.inf)),
                      candidate,
                      np.nextafter(candidate, np.float32(np.inf))):
        if not np.isfinite(neighbour):
            continue
        distance = context.abs(context.subtract(exact, decimal.Decimal(float(neighbour))))
        if (best_distance is None or distance < best_distance
                or (distance == best_distance and int(neighbour.view(np.uint32)) & 1 == 0)):
            best, best_distance = neighbour, distance
    return best


class FloatOps(NumericOps):
    """IEEE-754 浮点：除零得到 inf / nan，不发出警告"""

    def __init__(self, dtype):
        super().__init__(dtype.name)
        self.scalar_type = dtype.type

    @property
    def zero(self):
        return self.scalar_type(0.0)

    def add(self, a, b):
        with np.errstate(all='ignore'):
            return a + b

    def subtract(self, a, b):
        with np.errstate(all='ignore'):
            return a - b

    def multiply(self, a, b):
        with np.errstate(all='ignore'):
            return a * b

    def divide(self, a, b):
        with np.errstate(all='ignore'):
            return a / b

    def parse(self, text):
        text = text.strip()
        if not (_REAL_PATTERN.fullmatch(text) or _FLOAT_SPECIAL_PATTERN.fullmatch(text)):
            return False, self.zero
        with np.errstate(all='ignore'):
            if self.scalar_type is np.float32:
                return True, _nearest_float32(text)
            return True, self.scalar_type(float(text))

    def coerce(self, value):
        value = float(self._reject_text(value))
        with np.errstate(all='ignore'):
            return self.scalar_type(value)


class DecimalOps(NumericOps):
    """十进制数：在独立的 decimal.Context 中运算"""

    def __init__(self, precision):
        super().__init__('decimal')
        self.scalar_type = decimal.Decimal
        self.context = decimal.Context(prec=precision)

    @property
    def zero(self):
        return decimal.Decimal(0)

    def add(self, a, b):
        return self.context.add(a, b)

    def subtract(self, a, b):
        return self.context.subtract(a, b)

    def multiply(self, a, b):
        return self.context.multiply(a, b)

    def divide(self, a, b):
        # x/0 -> DivisionByZero, 0/0 -> InvalidOperation
        return self.context.divide(a, b)

    def parse(self, text):
        text = text.strip()
        if not _REAL_PATTERN.fullmatch(text):
            return False, self.zero
        try:
            return True, self.context.create_decimal(text)
        except decimal.DecimalException:
            return False, self.zero

    def coerce(self, value):
        return self.context.create_decimal(self._reject_text(value))


def resolve_type_name(numeric_type):
    """将数值类型描述（numpy类型/dtype/字符串/Decimal）规范化为 SUPPORTED_TYPES 中的名称"""
    if numeric_type is decimal.Decimal:
        return 'decimal'
    if isinstance(numeric_type, str) and numeric_type.lower() == 'decimal':
        return 'decimal'
    # np.dtype(None) 会被当作 float64
    if numeric_type is None:
        raise UnsupportedTypeError(numeric_type)
    try:
        dtype = np.dtype(numeric_type)
    except (TypeError, ValueError):
        raise UnsupportedTypeError(numeric_type) from None
    if dtype.name not in SUPPORTED_TYPES:
        raise UnsupportedTypeError(numeric_type)
    return dtype.name


def _build_ops(name):
    if name == 'decimal':
        return DecimalOps(EVALUATOR_CONFIG['decimal_precision'])
    dtype = np.dtype(name)
    if dtype.kind in 'iu':
        return IntegerOps(dtype)
    return FloatOps(dtype)


def get_numeric_ops(numeric_type):
    """
    获取数值类型对应的运算集合（进程内缓存）
    Args:
        numeric_type: numpy标量类型、np.dtype、dtype字符串或 decimal.Decimal
    Returns:
        NumericOps 实例
    Raises:
        UnsupportedTypeError: 类型不在允许集合中
    """
    name = resolve_type_name(numeric_type)
    ops = _OPS_CACHE.get(name)
    if ops is None:
        with _OPS_LOCK:
            ops = _OPS_CACHE.get(name)
            if ops is None:
                ops = _build_ops(name)
                _OPS_CACHE[name] = ops
                logger.debug(f"Resolved numeric ops for {name}")
    return ops
