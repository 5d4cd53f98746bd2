"""章节时光机 - 章节版本管理与差异分析后端"""

__version__ = "0.1.0"
