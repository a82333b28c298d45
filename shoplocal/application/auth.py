import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple

from shoplocal.core.errors import AuthenticationError, AuthorizationError
from shoplocal.domain.enums import Role
from shoplocal.domain.models import User
from shoplocal.infrastructure.state_manager import StateManager
from shoplocal.interfaces.IUserRepository import IUserRepository

logger = logging.getLogger(__name__)

# scrypt cost parameters, stored hash format is "<hex digest>.<hex salt>"
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_DKLEN = 64


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved from the server-side session."""
    user_id: int
    role: Role
    name: str = ""


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.scrypt(password.encode(), salt=salt.encode(), n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P,
                            dklen=SCRYPT_DKLEN)
    return f"{digest.hex()}.{salt}"


def verify_password(password: str, stored: str) -> bool:
    hashed, _, salt = (stored or "").partition(".")
    if not hashed or not salt:
        return False
    digest = hashlib.scrypt(password.encode(), salt=salt.encode(), n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P,
                            dklen=SCRYPT_DKLEN)
    return hmac.compare_digest(digest.hex(), hashed)


def ensure_role(actor: Optional[Actor], *roles: Role) -> Actor:
    """Raise unless the actor holds one of `roles`. Admins pass every check."""
    if actor is None:
        raise AuthenticationError()
    if actor.role is Role.ADMIN or actor.role in roles:
        return actor
    raise AuthorizationError()


class SessionManager:
    def __init__(self, state: StateManager, ttl: int = 3600):
        self.state = state
        self.ttl = ttl

    def create_session(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        self.state.set_json(self._key(token), {"userId": user.id, "role": Role(user.role).value, "name": user.name},
                            ttl=self.ttl)
        return token

    def resolve(self, token: Optional[str]) -> Optional[Actor]:
        if not token:
            return None
        data = self.state.get_json(self._key(token))
        if not data:
            return None
        try:
            return Actor(user_id=int(data["userId"]), role=Role(data["role"]), name=data.get("name", ""))
        except (KeyError, ValueError):
            logger.warning("Discarding malformed session record")
            self.state.delete(self._key(token))
            return None

    def destroy(self, token: Optional[str]):
        if token:
            self.state.delete(self._key(token))

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"


class AuthService:
    def __init__(self, user_repo: IUserRepository, sessions: SessionManager):
        self.user_repo = user_repo
        self.sessions = sessions

    def register(self, name: str, email: str, password: str, role: Role = Role.CUSTOMER,
                 phone: Optional[str] = None, language: str = "en") -> Tuple[User, str]:
        # Admin accounts are provisioned out of band
        if Role(role) is Role.ADMIN:
            raise AuthorizationError("Cannot self-register as admin")

        user = self.user_repo.create_user({
            "name": name,
            "email": email.lower(),
            "password_hash": hash_password(password),
            "role": Role(role),
            "phone": phone,
            "language": language,
        })
        logger.info(f"Registered {user.role.value} {user.id}")
        return user, self.sessions.create_session(user)

    def login(self, email: str, password: str) -> Tuple[User, str]:
        user = self.user_repo.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        return user, self.sessions.create_session(user)

    def logout(self, token: Optional[str]):
        self.sessions.destroy(token)

    def current_user(self, actor: Actor) -> User:
        user = self.user_repo.get_user(actor.user_id)
        if user is None:
            raise AuthenticationError()
        return user
