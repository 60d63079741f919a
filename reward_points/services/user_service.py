from sqlalchemy.orm import Session

from reward_points.models.user import User
from reward_points.services.errors import InactiveAccountError, NotFoundError


def get_user(db: Session, user_id):
    return db.query(User).filter(User.id == user_id).first()


def require_user(db: Session, user_id) -> User:
    user = get_user(db, user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


def require_active_user(db: Session, user_id) -> User:
    user = require_user(db, user_id)
    if not user.is_active:
        raise InactiveAccountError(user_id)
    return user
