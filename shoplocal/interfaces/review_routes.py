from fastapi import APIRouter, Depends

from shoplocal.application.auth import Actor
from shoplocal.domain.enums import Role
from shoplocal.domain.schemas import ReviewCreate, ReviewOut
from shoplocal.interfaces.dependencies import get_reviews, require_role

router = APIRouter(prefix="/api", tags=["reviews"])


@router.get("/shops/{shop_id}/reviews")
def list_reviews(shop_id: int, reviews=Depends(get_reviews)):
    return [ReviewOut.model_validate(review).to_payload() for review in reviews.list_reviews(shop_id)]


@router.post("/shops/{shop_id}/reviews", status_code=201)
def create_review(shop_id: int, body: ReviewCreate, actor: Actor = Depends(require_role(Role.CUSTOMER)),
                  reviews=Depends(get_reviews)):
    review = reviews.create_review(actor, shop_id, rating=body.rating, comment=body.comment, order_id=body.order_id)
    return ReviewOut.model_validate(review).to_payload()
