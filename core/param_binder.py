"""core/param_binder.py - 将各种调用方式统一为一个替换映射"""
from collections.abc import Iterable, Mapping
from typing import Any, Dict, Tuple

from core.errors import DuplicateKeyError


def _is_pair(item):
    """(str, value) 二元组视为具名替换项"""
    return isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str)


def _is_collection(item):
    return isinstance(item, Iterable) and not isinstance(item, (str, bytes)) and not _is_pair(item)


def bind_params(params: Tuple[Any, ...], ops) -> Dict[str, Any]:
    """
    支持的形式：
        ()                          -> 空映射
        (("x", 1), ("y", 2))        -> 具名
        ([("x", 1), ("y", 2)],)     -> 具名（也接受 Mapping）
        (2, 3)                      -> 位置参数，键为 "0", "1", ...
        ([2, 3],)                   -> 位置参数
    Args:
        params: calculate() 收到的可变参数
        ops: NumericOps，用于把值转换为目标类型
    Returns:
        新建的 {键: 数值} 字典
    """
    if not params:
        return {}

    if len(params) == 1 and isinstance(params[0], Mapping):
        mapping = params[0]
        if not all(isinstance(key, str) for key in mapping):
            raise TypeError("Substitution mapping keys must be strings")
        return {key: ops.coerce(value) for key, value in mapping.items()}
    if len(params) == 1 and _is_collection(params[0]):
        items = list(params[0])
    else:
        items = list(params)

    if not items:
        return {}

    named = [_is_pair(item) for item in items]
    if all(named):
        return _bind_named(items, ops)
    if any(named):
        raise TypeError("Cannot mix (key, value) pairs and bare values in one call")
    return _bind_positional(items, ops)


def _bind_named(pairs, ops):
    bound = {}
    for key, value in pairs:
        if key in bound:
            raise DuplicateKeyError(key)
        bound[key] = ops.coerce(value)
    return bound


def _bind_positional(values, ops):
    # str(int) 与区域设置无关
    return {str(index): ops.coerce(value) for index, value in enumerate(values)}
