from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from shoplocal.domain.enums import Role
from shoplocal.domain.models import CustomerProfile, User

class IUserRepository(ABC):
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    def create_user(self, data: Dict) -> User:
        pass

    @abstractmethod
    def list_by_role(self, role: Role) -> List[User]:
        pass

    @abstractmethod
    def get_profile(self, user_id: int) -> Optional[CustomerProfile]:
        pass

    @abstractmethod
    def save_profile(self, user_id: int, data: Dict) -> CustomerProfile:
        """Create the profile on first save, update it afterwards."""
        pass
