"""
数据库引擎与会话工厂

SQLAlchemyTreeStore 每次调用都从会话工厂新建 session，在线程池中执行，
所以 SQLite 连接都要关闭 check_same_thread。

公开 API:
- init_database(): 按 URL 或 DatabaseSettings 创建引擎和会话工厂
- get_engine(): 获取当前引擎（建表用）
- get_session_factory(): 获取当前会话工厂（传给 SQLAlchemyTreeStore）
- dispose_database(): 释放连接池
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ycatalog.config import DatabaseSettings
from ycatalog.log import get_logger

logger = get_logger("ycatalog.orm.session")

__all__ = [
    'init_database',
    'get_engine',
    'get_session_factory',
    'dispose_database',
]

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _engine_options(config: DatabaseSettings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": config.echo}
    if config.url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if config.url in ("sqlite://", "sqlite:///:memory:"):
            # 内存库只有一个连接，所有线程共用
            options["poolclass"] = StaticPool
            return options
    options.update(
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=config.pool_pre_ping,
    )
    return options


def init_database(
    database_url: str = None,
    echo: bool = False,
    config: DatabaseSettings = None,
) -> Tuple[Engine, sessionmaker]:
    """创建引擎和会话工厂，重复调用会释放旧引擎

    Args:
        database_url: 数据库连接URL，提供 config 时忽略
        echo: 是否输出SQL语句，提供 config 时忽略
        config: 数据库配置，连接池参数取自这里

    Raises:
        ValueError: 没有提供连接URL

    使用示例:
        from ycatalog.orm import init_database
        from ycatalog.tree import SQLAlchemyTreeStore

        _, session_factory = init_database(config=settings.database)
        store = SQLAlchemyTreeStore(session_factory)
    """
    global _engine, _session_factory

    if config is None:
        config = DatabaseSettings(url=database_url or "", echo=echo)
    if not config.url:
        raise ValueError("database_url 是必需的，请通过参数或 config 提供")

    dispose_database()

    _engine = create_engine(config.url, **_engine_options(config))
    _session_factory = sessionmaker(autocommit=False, autoflush=True, bind=_engine)
    logger.info(f"数据库引擎已创建: {_engine.url.render_as_string(hide_password=True)}")
    return _engine, _session_factory


def get_engine() -> Engine:
    """
    Raises:
        RuntimeError: 数据库未初始化
    """
    if _engine is None:
        raise RuntimeError("数据库未初始化，请先调用 init_database()")
    return _engine


def get_session_factory() -> sessionmaker:
    """
    Raises:
        RuntimeError: 数据库未初始化
    """
    if _session_factory is None:
        raise RuntimeError("数据库未初始化，请先调用 init_database()")
    return _session_factory


def dispose_database() -> None:
    """释放连接池并清空当前引擎"""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
