"""slug 生成与租户内唯一性保证"""

import re
import unicodedata
from typing import Optional

from ycatalog.exceptions import Err, ErrorCode
from .stores import BaseTreeStore

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """把名称转换为 URL 安全的 slug

    去掉变音符号，转小写，连续的非 [a-z0-9] 字符替换为单个 "-"，
    再去掉首尾的 "-"。

    使用示例:
        slugify("Café & Bar")   # "cafe-bar"
        slugify("  Hello  ")    # "hello"
        slugify("电子产品")      # ""
    """
    decomposed = unicodedata.normalize("NFD", value or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("-", stripped.lower()).strip("-")


class SlugAllocator:
    """slug 分配器

    只读：只负责找到可用的 slug，写入由调用方完成。
    两次调用之间的并发写入仍可能撞上唯一约束，存储层会抛出 ResourceConflictException。
    """

    def __init__(self, store: BaseTreeStore):
        self.store = store

    async def ensure_unique(self, tenant_id: str, candidate: str, exclude_id: Optional[str] = None) -> str:
        """在 candidate 后追加 -2、-3 … 直到租户内没有冲突"""
        slug = candidate
        suffix = 2
        while await self.store.exists_slug(tenant_id, slug, exclude_id):
            slug = f"{candidate}-{suffix}"
            suffix += 1
        return slug

    async def allocate(
        self,
        tenant_id: str,
        name: str,
        slug_hint: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> str:
        """由 slug_hint（优先）或 name 生成唯一 slug

        Raises:
            ValidationException: 生成的 slug 为空
        """
        source = slug_hint if slug_hint else name
        candidate = slugify(source)
        if not candidate:
            raise Err.invalid(
                f"无法从 {source!r} 生成有效的 slug",
                code=ErrorCode.INVALID_SLUG,
                details=["slug 只能包含小写字母、数字和连字符，请显式指定 slug"],
            )
        return await self.ensure_unique(tenant_id, candidate, exclude_id)
