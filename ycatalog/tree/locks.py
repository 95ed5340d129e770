"""租户级互斥锁

结构性变更（创建、改名、移动、删除、路径重建）按租户串行执行，
避免两个并发移动读到对方写入前的旧结构。锁只在当前进程内有效，
多进程部署需要外部分布式锁。
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class TenantLockRegistry:
    """每个租户一把 asyncio.Lock

    通过 hold() 使用的锁在最后一个持有者和等待者离开后从注册表中移除，
    注册表大小只取决于当前活跃的租户数。

    使用示例:
        locks = TenantLockRegistry()

        async with locks.hold("tenant-1"):
            ...
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        # 每个租户正在持有或等待锁的协程数
        self._users: Dict[str, int] = {}

    def get(self, tenant_id: str) -> asyncio.Lock:
        lock = self._locks.get(tenant_id)
        if lock is None:
            lock = self._locks[tenant_id] = asyncio.Lock()
        return lock

    def is_locked(self, tenant_id: str) -> bool:
        lock = self._locks.get(tenant_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, tenant_id: str) -> AsyncIterator[None]:
        lock = self.get(tenant_id)
        self._users[tenant_id] = self._users.get(tenant_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._users[tenant_id] - 1
            if remaining:
                self._users[tenant_id] = remaining
            else:
                del self._users[tenant_id]
                self._locks.pop(tenant_id, None)

    def __len__(self) -> int:
        return len(self._locks)
