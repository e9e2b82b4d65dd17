from sqlalchemy import (
    Column,
    String,
    TIMESTAMP,
    func,
)
from app.db.base import Base, BigIntegerPK


class Category(Base):
    __tablename__ = "categories"

    id = Column(
        BigIntegerPK,
        primary_key=True,
        autoincrement=True,
    )

    name = Column(
        String(255),
        nullable=False,
        comment="分类名称",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
