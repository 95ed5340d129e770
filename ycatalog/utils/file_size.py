"""文件大小解析工具

日志配置里的 "10MB" 之类字符串在这里转成字节数。

使用示例:
    from ycatalog.utils import parse_file_size

    parse_file_size("10MB")   # 10485760
    parse_file_size("1.5GB")  # 1610612736
    parse_file_size(1024)     # 1024
"""

from typing import Union


# 单位转换表（按长度降序排列）
SIZE_UNITS = [
    ('TB', 1024 ** 4),
    ('GB', 1024 ** 3),
    ('MB', 1024 ** 2),
    ('KB', 1024),
    ('B', 1),
]

# 单位别名
SIZE_UNIT_ALIASES = {
    'T': 'TB',
    'G': 'GB',
    'M': 'MB',
    'K': 'KB',
}


def parse_file_size(size_str: Union[str, int, float]) -> int:
    """解析文件大小字符串

    Args:
        size_str: 文件大小字符串（不区分大小写），或直接传入字节数

    Returns:
        int: 字节数

    Raises:
        ValueError: 格式无效
    """
    if isinstance(size_str, (int, float)):
        return int(size_str)

    text = str(size_str).strip().upper()
    if not text:
        raise ValueError("文件大小字符串不能为空")

    for alias, unit in SIZE_UNIT_ALIASES.items():
        if text.endswith(alias) and not text.endswith(unit):
            text = text[:-len(alias)] + unit
            break

    for unit, multiplier in SIZE_UNITS:
        if text.endswith(unit):
            number = text[:-len(unit)].strip()
            try:
                return int(float(number) * multiplier)
            except ValueError:
                raise ValueError(f"无效的文件大小: {size_str}") from None

    try:
        return int(float(text))
    except ValueError:
        raise ValueError(f"无效的文件大小: {size_str}") from None
