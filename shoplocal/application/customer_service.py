import logging
from typing import Dict, List

from shoplocal.application.auth import Actor, ensure_role
from shoplocal.core.errors import NotFoundError
from shoplocal.domain.enums import Role
from shoplocal.domain.models import CustomerProfile, User
from shoplocal.interfaces.IUserRepository import IUserRepository

logger = logging.getLogger(__name__)


class CustomerService:
    """Customer directory for admins and the customer's own delivery profile."""

    def __init__(self, user_repo: IUserRepository):
        self.user_repo = user_repo

    def list_customers(self, actor: Actor) -> List[User]:
        ensure_role(actor, Role.ADMIN)
        return self.user_repo.list_by_role(Role.CUSTOMER)

    def get_profile(self, actor: Actor) -> CustomerProfile:
        ensure_role(actor, Role.CUSTOMER)
        profile = self.user_repo.get_profile(actor.user_id)
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def update_profile(self, actor: Actor, data: Dict) -> CustomerProfile:
        ensure_role(actor, Role.CUSTOMER)
        profile = self.user_repo.save_profile(actor.user_id, data)
        logger.info(f"Profile saved for customer {actor.user_id}")
        return profile
