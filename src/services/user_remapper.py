"""
User Remapper - Decide which account an import belongs to.

An import is always written to exactly one owner. The owner is resolved
once per operation and created as a placeholder when missing, so every later
foreign key to users succeeds.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import User
from src.services.exceptions import UserResolutionFailed
from src.services.logging_utils import get_service_logger
from src.utils.config import get_default_user_id
from src.utils.constants import PLACEHOLDER_USER_NAME

logger = get_service_logger(__name__)


def resolve_effective_user(
    requested_user_id: Optional[str] = None,
    bundle_user_id: Optional[str] = None,
    default_user_id: Optional[str] = None,
) -> str:
    """
    Pick the owner for an import.

    Precedence: an explicitly requested user, then the user recorded in the
    bundle, then the single-tenant default.

    Args:
        requested_user_id: Owner named by the caller
        bundle_user_id: ``user_id`` embedded in the bundle
        default_user_id: Fallback owner; the configured default when None

    Returns:
        Effective owner id
    """
    if requested_user_id:
        return requested_user_id
    if bundle_user_id:
        return bundle_user_id
    return default_user_id or get_default_user_id()


def ensure_user(
    session: Session,
    user_id: str,
    display_name: str = PLACEHOLDER_USER_NAME,
) -> bool:
    """
    Create the owner row if it does not exist yet.

    Existing users are left untouched.

    Args:
        session: Session of the enclosing unit of work
        user_id: Owner id to ensure
        display_name: Name for a newly created placeholder

    Returns:
        True if a placeholder user was created

    Raises:
        UserResolutionFailed: If the store cannot read or create the row
    """
    try:
        if session.get(User, user_id) is not None:
            return False
        session.add(User(id=user_id, display_name=display_name))
        session.flush()
    except SQLAlchemyError as e:
        raise UserResolutionFailed(user_id, e)

    logger.info(f"Created placeholder user {user_id}")
    return True
