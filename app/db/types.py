from sqlalchemy import BigInteger, Integer, LargeBinary
from sqlalchemy.dialects.mysql import LONGBLOB

# sqlite 只有 INTEGER PRIMARY KEY 才自增
BigId = BigInteger().with_variant(Integer(), "sqlite")
Blob = LargeBinary().with_variant(LONGBLOB(), "mysql")
