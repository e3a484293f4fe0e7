from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from ..base import Base


class SourceArticle(Base):
    """News items fed in by the aggregator; read as source material for generated questions."""

    __tablename__ = "source_articles"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    published_at = Column(DateTime(timezone=True), server_default=func.now())
