import logging
from collections import OrderedDict
from typing import Dict, Optional, Union

import pandas as pd

from config.config import FORMULA_CONFIG
from core import (
    OPERATOR_DEFINITIONS, DuplicateKeyError, RPNError, RPNEvaluator, RPNValidator,
    Token, TokenFormatError, tokenize
)

logger = logging.getLogger(__name__)

# 编译后Token的种类
_OPERATOR = 'operator'
_LITERAL = 'literal'
_COLUMN = 'column'


class FormulaEvaluator:
    """把同一个RPN公式应用到数据的每一行，列名作为替换键"""

    def __init__(self, numeric_type=None, cache_size=None):
        self.rpn_evaluator = RPNEvaluator(numeric_type)
        self.ops = self.rpn_evaluator.ops
        # 使用有限大小的OrderedDict实现LRU缓存
        self.cache_size = cache_size or FORMULA_CONFIG['cache_size']
        self._compiled_cache = OrderedDict()
        self._cache_hits = 0
        self._cache_misses = 0

    def clear_cache(self):
        """清空缓存（供外部调用）"""
        self._compiled_cache.clear()
        logger.info(f"Cache cleared. Hits: {self._cache_hits}, Misses: {self._cache_misses}")
        self._cache_hits = 0
        self._cache_misses = 0

    def cache_info(self) -> Dict[str, int]:
        return {
            'hits': self._cache_hits,
            'misses': self._cache_misses,
            'size': len(self._compiled_cache),
        }

    def evaluate(self, formula: str, data: Union[pd.DataFrame, Dict],
                 errors: Optional[str] = None) -> pd.Series:
        """
        Args:
            formula: RPN公式字符串
            data: DataFrame 或 {列名: 列数据} 字典
            errors: 'raise' 抛出第一个失败行的异常；'coerce' 记录日志并将该行置为 None
        Returns:
            与数据索引对齐的结果Series
        """
        errors = errors or FORMULA_CONFIG['errors']
        if errors not in ('raise', 'coerce'):
            raise ValueError(f"errors must be 'raise' or 'coerce', got {errors!r}")

        frame = self._prepare_data(data)
        plan = self._get_compiled(formula, frame.columns)
        # Token只在本次调用内存在
        compiled = self._build_tokens(plan)

        values = []
        failed = 0
        for position, row in enumerate(frame.itertuples(index=False, name=None)):
            try:
                values.append(self._run(compiled, row))
            except (ArithmeticError, RPNError, TypeError, ValueError) as e:
                if errors == 'raise':
                    raise
                logger.warning(f"Row {position} failed for formula '{formula[:50]}': "
                               f"{type(e).__name__}: {e}")
                values.append(None)
                failed += 1

        if failed or self.ops.name == 'decimal':
            return pd.Series(values, index=frame.index, dtype=object, name=formula)
        return pd.Series(values, index=frame.index, dtype=self.ops.scalar_type, name=formula)

    def evaluate_many(self, formulas, data: Union[pd.DataFrame, Dict],
                      errors: Optional[str] = None) -> pd.DataFrame:
        """对多个公式求值，返回原始列加上每个公式一列的新DataFrame"""
        frame = self._prepare_data(data)
        transformed = frame.copy()
        for formula in formulas:
            transformed[formula] = self.evaluate(formula, frame, errors=errors)
        return transformed

    def _get_compiled(self, formula, columns):
        cache_key = (formula, tuple(str(column) for column in columns))

        if cache_key in self._compiled_cache:
            # 移到末尾（最近使用）
            self._compiled_cache.move_to_end(cache_key)
            self._cache_hits += 1
            logger.debug(f"Cache hit for formula: {formula[:50]}...")
            return self._compiled_cache[cache_key]

        self._cache_misses += 1
        plan = self._compile(formula, cache_key[1])
        self._compiled_cache[cache_key] = plan
        self._manage_cache()
        return plan

    def _manage_cache(self):
        """管理缓存大小"""
        while len(self._compiled_cache) > self.cache_size:
            # 删除最久未使用的条目
            self._compiled_cache.popitem(last=False)

    def _compile(self, formula, column_keys):
        """
        预先分类公式中的每个Token字符串：操作符、字面量或列引用（只保存字符串和列位置）
        列名的优先级高于字面量解析（与替换映射一致）
        """
        RPNValidator.check(formula)

        positions = {}
        for i, key in enumerate(column_keys):
            if key in positions:
                raise DuplicateKeyError(key)
            positions[key] = i

        plan = []
        for text in tokenize(formula):
            if text in OPERATOR_DEFINITIONS:
                plan.append((_OPERATOR, text))
            elif text in positions:
                plan.append((_COLUMN, positions[text]))
            else:
                ok, _ = self.ops.parse(text)
                if not ok:
                    raise TokenFormatError(text, self.ops.name)
                plan.append((_LITERAL, text))
        return tuple(plan)

    def _build_tokens(self, plan):
        return [
            (kind, payload if kind == _COLUMN else Token.from_string(payload, self.ops))
            for kind, payload in plan
        ]

    def _run(self, compiled, row):
        stack = []
        for kind, payload in compiled:
            if kind == _COLUMN:
                stack.append(self.ops.coerce(row[payload]))
            elif kind == _LITERAL:
                stack.append(payload.value)
            else:
                second = stack.pop()
                first = stack.pop()
                stack.append(payload.operate(first, second).value)
        return stack[0]

    def _prepare_data(self, data: Union[pd.DataFrame, Dict]) -> pd.DataFrame:
        if isinstance(data, pd.DataFrame):
            return data
        if isinstance(data, dict):
            return pd.DataFrame(data)
        raise TypeError(f"Unsupported data type: {type(data)}")
