from fastapi import APIRouter, Depends

from shoplocal.application.auth import Actor
from shoplocal.domain.enums import Role
from shoplocal.domain.schemas import ProfileOut, ProfileUpdate, UserOut
from shoplocal.interfaces.dependencies import get_customers, require_role

router = APIRouter(prefix="/api", tags=["customers"])


@router.get("/admin/customers")
def list_customers(actor: Actor = Depends(require_role(Role.ADMIN)), customers=Depends(get_customers)):
    return [UserOut.model_validate(user).to_payload() for user in customers.list_customers(actor)]


@router.get("/customer/profile")
def get_profile(actor: Actor = Depends(require_role(Role.CUSTOMER)), customers=Depends(get_customers)):
    return ProfileOut.model_validate(customers.get_profile(actor)).to_payload()


@router.put("/customer/profile")
def update_profile(body: ProfileUpdate, actor: Actor = Depends(require_role(Role.CUSTOMER)),
                   customers=Depends(get_customers)):
    profile = customers.update_profile(actor, body.model_dump(exclude_unset=True))
    return ProfileOut.model_validate(profile).to_payload()
