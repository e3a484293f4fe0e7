from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session
from ..db.models import SourceArticle


class SourceArticleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_recent(self, category: str, limit: int = 10) -> List[SourceArticle]:
        """Latest articles of a category, matched case-insensitively."""
        return (
            self.db.query(SourceArticle)
            .filter(func.lower(SourceArticle.category) == category.lower())
            .order_by(SourceArticle.published_at.desc(), SourceArticle.id.desc())
            .limit(limit)
            .all()
        )
