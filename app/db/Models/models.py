from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ShortLink(Base):
    __tablename__ = "urls"

    # Surrogate key assigned by the database; business logic only uses code
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Unique index makes insert-with-uniqueness-check a single atomic statement
    code = Column(String(64), unique=True, index=True, nullable=False)
    destination = Column(String(2048), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    hits = Column(Integer, nullable=False, default=0)
