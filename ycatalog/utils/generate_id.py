import time
from uuid import uuid4


def generate_id(prefix: str = "") -> str:
    """生成分类记录 ID

    由微秒时间戳（十六进制）和随机串组成，同一进程内按创建顺序大致递增。
    结果只包含 [0-9a-f-]，可以安全地出现在 ancestor_path 的 LIKE 条件中。
    """
    timestamp = hex(int(time.time() * 1_000_000))[2:]
    rand_part = uuid4().hex[:8]
    return f"{prefix}{timestamp}-{rand_part}"
