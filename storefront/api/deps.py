# storefront/api/deps.py
from fastapi import Depends, Query
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.data.models.user import UserModel
from storefront.services.address_client import AddressClient
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.user_service import UserService


def get_actor(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)) -> UserModel:
    # authentication is handled upstream, the gateway passes the user id through
    return UserService(db).get_actor(user_id)


def get_lock_service() -> LockService:
    return LockService()


def get_address_client() -> AddressClient:
    return AddressClient()


def get_notifier() -> NotificationService:
    return NotificationService()
