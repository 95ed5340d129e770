"""文件大小解析测试"""

import pytest

from ycatalog.utils import parse_file_size


class TestParseFileSize:
    """parse_file_size 函数测试"""

    @pytest.mark.parametrize("raw, expected", [
        ("100B", 100),
        ("100 b", 100),
        ("1KB", 1024),
        ("10kb", 10 * 1024),
        ("10MB", 10 * 1024 * 1024),
        ("100 MB", 100 * 1024 * 1024),
        ("2GB", 2 * 1024 ** 3),
        ("1TB", 1024 ** 4),
        ("1.5MB", int(1.5 * 1024 * 1024)),
        ("512", 512),
    ])
    def test_parse(self, raw, expected):
        assert parse_file_size(raw) == expected

    @pytest.mark.parametrize("raw, expected", [
        ("10M", 10 * 1024 * 1024),
        ("1G", 1024 ** 3),
        ("4k", 4 * 1024),
    ])
    def test_short_units(self, raw, expected):
        assert parse_file_size(raw) == expected

    def test_numeric_input(self):
        assert parse_file_size(2048) == 2048
        assert parse_file_size(10.7) == 10

    @pytest.mark.parametrize("raw", ["", "   ", "abc", "MB", "1.2.3KB"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_file_size(raw)
