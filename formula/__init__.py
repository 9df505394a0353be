"""公式模块 - 按行批量评估RPN公式"""
from .evaluator import FormulaEvaluator

__all__ = ['FormulaEvaluator']
