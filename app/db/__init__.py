from .base import Base
from .session import engine, SessionLocal, unit_of_work


def init_db(bind=None):
    """按模型建表（已存在的表会跳过）"""
    import app.models  # noqa: F401  注册全部模型到 Base.metadata

    Base.metadata.create_all(bind=bind or engine)


# Export for convenience
__all__ = ["Base", "engine", "SessionLocal", "unit_of_work", "init_db"]
