import logging
from typing import List, Optional

from shoplocal.application.auth import Actor, ensure_role
from shoplocal.core.errors import NotFoundError, ValidationError
from shoplocal.domain import channels
from shoplocal.domain.enums import Role
from shoplocal.domain.models import Review
from shoplocal.domain.schemas import ReviewOut
from shoplocal.interfaces.INotificationBroker import INotificationBroker
from shoplocal.interfaces.IOrderRepository import IOrderRepository
from shoplocal.interfaces.IReviewRepository import IReviewRepository
from shoplocal.interfaces.IShopRepository import IShopRepository

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, review_repo: IReviewRepository, shop_repo: IShopRepository, order_repo: IOrderRepository,
                 broker: INotificationBroker):
        self.review_repo = review_repo
        self.shop_repo = shop_repo
        self.order_repo = order_repo
        self.broker = broker

    def list_reviews(self, shop_id: int) -> List[Review]:
        if self.shop_repo.get_shop(shop_id) is None:
            raise NotFoundError("Shop not found")
        return self.review_repo.list_for_shop(shop_id)

    def create_review(self, actor: Actor, shop_id: int, rating: int, comment: Optional[str] = None,
                      order_id: Optional[int] = None) -> Review:
        ensure_role(actor, Role.CUSTOMER)

        shop = self.shop_repo.get_shop(shop_id)
        if shop is None:
            raise NotFoundError("Shop not found")

        if order_id is not None:
            order = self.order_repo.get_order(order_id)
            if order is None or order.customer_id != actor.user_id or order.shop_id != shop_id:
                raise ValidationError.for_field("orderId", "Order does not belong to you and this shop")

        review = self.review_repo.create_review({
            "customer_id": actor.user_id,
            "shop_id": shop_id,
            "order_id": order_id,
            "rating": rating,
            "comment": comment,
        })
        logger.info(f"Review {review.id} ({rating}/5) for shop {shop_id} by customer {actor.user_id}")

        self.broker.emit(channels.vendor_channel(shop.vendor_id), channels.NEW_REVIEW,
                         ReviewOut.model_validate(review).to_payload())
        return review
