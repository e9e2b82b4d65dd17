from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLite 只有 INTEGER PRIMARY KEY 才会自增
BigIntegerPK = BigInteger().with_variant(Integer(), "sqlite")
