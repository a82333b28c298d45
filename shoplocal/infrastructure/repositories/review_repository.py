from typing import Dict, List

from sqlalchemy import desc

from shoplocal.domain.models import Review
from shoplocal.infrastructure.repositories.base import SqlAlchemyRepository
from shoplocal.interfaces.IReviewRepository import IReviewRepository


class SqlAlchemyReviewRepository(SqlAlchemyRepository, IReviewRepository):

    def create_review(self, data: Dict) -> Review:
        with self._session() as session:
            review = Review(**data)
            session.add(review)
            session.flush()
            return review

    def list_for_shop(self, shop_id: int) -> List[Review]:
        with self._session() as session:
            return (
                session.query(Review)
                .filter(Review.shop_id == shop_id)
                .order_by(desc(Review.created_at), desc(Review.id))
                .all()
            )
