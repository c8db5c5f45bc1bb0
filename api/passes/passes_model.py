from sqlalchemy import (
    Column,
    String,
    Float,
    Boolean,
    DateTime,
    JSON,
    func,
)
from config.database import Base


class Pass(Base):
    """
    One pass document. `id` is the document key; `pass_id` mirrors the
    secondary `passId` field some issuers write instead of using it as key.
    """
    __tablename__ = "passes"

    id             = Column(String(128), primary_key=True)
    pass_id        = Column(String(128), nullable=True, index=True)
    pass_type      = Column(String(64), nullable=True)
    user_name      = Column(String(255), nullable=True)
    name           = Column(String(255), nullable=True)
    amount         = Column(Float, nullable=True)
    price          = Column(Float, nullable=True)
    team_snapshot  = Column(JSON, nullable=True)
    checked_in     = Column(Boolean, nullable=False, default=False)
    checked_in_at  = Column(DateTime(timezone=True), nullable=True)
    created_at     = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at     = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
