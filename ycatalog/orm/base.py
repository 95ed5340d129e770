"""ORM 声明基类"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """所有 ycatalog 表模型的声明基类

    使用示例:
        from ycatalog.orm import Base, get_engine

        Base.metadata.create_all(get_engine())
    """
    pass
