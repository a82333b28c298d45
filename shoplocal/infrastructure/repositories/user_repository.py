from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from shoplocal.core.errors import ValidationError
from shoplocal.domain.enums import Role
from shoplocal.domain.models import CustomerProfile, User
from shoplocal.infrastructure.repositories.base import SqlAlchemyRepository
from shoplocal.interfaces.IUserRepository import IUserRepository


class SqlAlchemyUserRepository(SqlAlchemyRepository, IUserRepository):

    def get_user(self, user_id: int) -> Optional[User]:
        with self._session() as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._session() as session:
            return session.query(User).filter(User.email == email.lower()).first()

    def create_user(self, data: Dict) -> User:
        with self._session() as session:
            user = User(**data)
            session.add(user)
            try:
                session.flush()
            except IntegrityError:
                raise ValidationError.for_field("email", "Email already registered")
            return user

    def list_by_role(self, role: Role) -> List[User]:
        with self._session() as session:
            return session.query(User).filter(User.role == role).order_by(User.id).all()

    # --- Customer profiles ---

    def get_profile(self, user_id: int) -> Optional[CustomerProfile]:
        with self._session() as session:
            return session.query(CustomerProfile).filter(CustomerProfile.user_id == user_id).first()

    def save_profile(self, user_id: int, data: Dict) -> CustomerProfile:
        with self._session() as session:
            profile = session.query(CustomerProfile).filter(CustomerProfile.user_id == user_id).first()
            if profile is None:
                profile = CustomerProfile(user_id=user_id)
                session.add(profile)
            for key, value in data.items():
                setattr(profile, key, value)
            session.flush()
            return profile
