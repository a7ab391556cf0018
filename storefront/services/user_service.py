# storefront/services/user_service.py
from sqlalchemy.orm import Session

from storefront.data.models.user import UserModel
from storefront.domain.errors import EmailAlreadyUsed, UserNotFound
from storefront.domain.schemas import UserCreate, UserRead
from storefront.repos.user_repo import UserRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        """
        Registers the user mirrored from the identity provider.
        Repeating the call with the same id returns the existing user.
        """
        existing = self.repo.get_user(payload.id)
        if existing:
            return UserRead.model_validate(existing)

        if payload.email:
            owner = self.repo.get_by_email(payload.email)
            if owner is not None:
                raise EmailAlreadyUsed(email=payload.email)

        try:
            user = self.repo.create_user(
                UserModel(id=payload.id, name=payload.name, email=payload.email, role=payload.role)
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"User {user.id} registered as {user.role.value}")
        return UserRead.model_validate(user)

    def get_user(self, user_id: int) -> UserRead:
        return UserRead.model_validate(self.get_actor(user_id))

    def get_actor(self, user_id: int) -> UserModel:
        user = self.repo.get_user(user_id)
        if not user:
            raise UserNotFound(user_id=user_id)
        return user
