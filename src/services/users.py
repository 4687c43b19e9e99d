# staff-only management of accounts and roles
from typing import List, Optional

from db import crud
from db.auth import AuthClient, hash_password
from db.models import Capability, Profile, Role
from utils.errors import PermissionDenied, ValidationError, backend_errors
from utils.logger import get_logger
from utils.pure import validate_email, validate_new_password

_logger = get_logger(__name__)

_USER_FAILED = "Could not update this user."


def _require(actor: Optional[Profile], capability: Capability) -> Profile:
    if actor is None or not actor.can(capability):
        raise PermissionDenied("You are not allowed to do that.")
    return actor


async def list_users(actor: Optional[Profile]) -> List[Profile]:
    _require(actor, Capability.VIEW_USERS)
    with backend_errors("listing users", "Could not load users."):
        return await crud.list_profiles()


async def promote_to_admin(actor: Optional[Profile], user_id: str) -> bool:
    _require(actor, Capability.PROMOTE_USERS)
    return await _change_role(actor, user_id, Role.ADMIN)


async def demote_to_customer(actor: Optional[Profile], user_id: str) -> bool:
    _require(actor, Capability.PROMOTE_USERS)
    if user_id == actor.id:
        raise PermissionDenied("You cannot remove your own privileges.")
    return await _change_role(actor, user_id, Role.CUSTOMER)


async def _change_role(actor: Profile, user_id: str, role: Role) -> bool:
    with backend_errors(f"setting role of {user_id}", _USER_FAILED):
        target = await crud.get_profile(user_id)
        if target is None:
            return False
        if target.role == Role.MASTER_ADMIN:
            raise PermissionDenied("A master admin's role cannot be changed here.")
        _logger.info(f"{actor.id} set role of {user_id} to {role.value}")
        return await crud.update_profile(user_id, role=role)


async def create_user(
    actor: Optional[Profile],
    auth: AuthClient,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    role: Role = Role.ADMIN,
) -> str:
    _require(actor, Capability.MANAGE_USERS)
    user_id = await auth.sign_up(email, password, full_name, phone, role=Role(role))
    _logger.info(f"{actor.id} created user {user_id} ({Role(role).value})")
    return user_id


async def update_user(
    actor: Optional[Profile],
    user_id: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[Role] = None,
    password: Optional[str] = None,
) -> bool:
    """Blank password keeps the current one."""
    _require(actor, Capability.MANAGE_USERS)
    if user_id == actor.id and role is not None and Role(role) != actor.role:
        raise PermissionDenied("You cannot change your own role.")
    if email is not None:
        email = validate_email(email)
    password_hash = hash_password(validate_new_password(password)) if password else None

    with backend_errors(f"updating user {user_id}", _USER_FAILED):
        if email is not None or password_hash is not None:
            if not await crud.update_user(user_id, email=email, password_hash=password_hash):
                raise ValidationError("This user no longer exists.")
        updated = await crud.update_profile(
            user_id, full_name=full_name, phone=phone, email=email, role=role
        )
    _logger.info(f"{actor.id} updated user {user_id}")
    return updated


async def delete_user(actor: Optional[Profile], target: Profile) -> bool:
    _require(actor, Capability.MANAGE_USERS)
    if target.id == actor.id:
        raise PermissionDenied("You cannot delete your own account.")
    if target.role == Role.MASTER_ADMIN:
        raise PermissionDenied("A master admin cannot be deleted.")
    with backend_errors(f"deleting user {target.id}", _USER_FAILED):
        deleted = await crud.delete_user(target.id)
    if deleted:
        _logger.info(f"{actor.id} deleted user {target.id}")
    return deleted
