"""配置文件"""

# 求值器参数
EVALUATOR_CONFIG = {
    "default_numeric_type": "float64",
    "token_separator": " ",  # 只按ASCII空格切分
    "decimal_precision": 28,  # 十进制有效位数
}

# 批量公式评估参数
FORMULA_CONFIG = {
    "cache_size": 1000,  # 编译后公式的LRU缓存条目数
    "errors": "raise",  # raise: 抛出第一行错误; coerce: 该行记为缺失值
}

# 日志配置（仅命令行入口使用）
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


# 验证配置
def validate_config():
    """验证配置的合理性"""
    assert EVALUATOR_CONFIG["token_separator"] == " ", "表达式只按ASCII空格切分"
    assert EVALUATOR_CONFIG["decimal_precision"] > 0, "decimal精度必须为正数"
    assert FORMULA_CONFIG["cache_size"] > 0, "缓存大小必须为正数"
    assert FORMULA_CONFIG["errors"] in ("raise", "coerce"), "errors只能是raise或coerce"
    assert LOGGING_CONFIG["level"] in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
