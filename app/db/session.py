from contextlib import contextmanager
import logging
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.database_url,
    pool_size=10,
    max_overflow=20,
    pool_pre_ping=True,
    pool_recycle=1800,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """事务边界：块内全部写操作要么一起提交，要么一起回滚

    请求被取消（CancelledError / KeyboardInterrupt 等 BaseException）时同样回滚。
    """
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        logger.warning("事务已回滚")
        raise
