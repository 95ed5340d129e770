"""版本信息"""

__version__ = "0.3.0"
__author__ = "yafo-ai"
__description__ = "多租户分类树引擎：物化路径、祖先链与层级的一致性维护"
