from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_utc
from ..common.validators import optional_str, require_email, require_min_length, require_non_empty
from ..core.constants import MANAGEMENT_ID_PREFIX, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..database.mongo_base import generate_id, is_object_id
from ..management.repository import ManagementRepository
from ..sessions.model import Session
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def extract_email_domain(email: str) -> Optional[str]:
    if not email or "@" not in email:
        return None
    return email.split("@", 1)[1].lower()


@dataclass(frozen=True)
class AuthResult:
    user: User
    session: Session


def _session_for(user: User) -> Session:
    return Session(
        user_id=user.user_id,
        management_id=user.management_id,
        email=user.email,
        role=user.role,
    )


class AuthService:
    """Use cases: register and authenticate (login)."""

    def __init__(
        self,
        users: UserRepository,
        managements: ManagementRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = lambda: generate_id(MANAGEMENT_ID_PREFIX),
    ):
        self._users = users
        self._managements = managements
        self._clock = clock
        self._id_factory = id_factory

    def _new_management_id(self) -> str:
        while True:
            candidate = self._id_factory()
            if self._managements.get(candidate) is None:
                return candidate

    def _resolve_tenant(self, *, email_domain: str, name: str) -> tuple[str, Role]:
        """Find the management for a domain, creating it (and an admin) on first sight."""
        existing = self._managements.get_by_domain(email_domain)
        if existing:
            return existing.management_id, Role.STUDENT

        management_id = self._new_management_id()
        org_name = f"{name}'s Organization" if name else "My Organization"
        if self._managements.create(
            management_id=management_id,
            name=org_name,
            email_domain=email_domain,
            now=self._clock(),
        ):
            logger.info("Created management %s for domain %s", management_id, email_domain)
            return management_id, Role.ADMIN

        # Lost a race against another first registration from the same domain
        existing = self._managements.get_by_domain(email_domain)
        if not existing:
            raise ConflictError("Could not register organization, please retry")
        return existing.management_id, Role.STUDENT

    def register(self, *, email, password, name=None) -> AuthResult:
        if not email or not password:
            raise ValidationError("Email and password are required")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        email = require_email(email)
        name = (optional_str(name, "Name") or "").strip()

        existing = self._users.get_by_email(email)
        if existing and existing.password_hash:
            raise ConflictError("An account with this email already exists")
        if existing:
            return self._activate(existing, password=password, name=name)

        email_domain = extract_email_domain(email)
        management_id, role = self._resolve_tenant(email_domain=email_domain, name=name)

        now = self._clock()
        try:
            user_id = self._users.create_user(
                email=email,
                password_hash=generate_password_hash(password),
                name=name,
                management_id=management_id,
                role=role,
                email_domain=email_domain,
                now=now,
            )
        except Exception:
            if role == Role.ADMIN:
                # An admin-less tenant would turn every later sign-up from the domain into a student
                self._managements.delete(management_id)
                logger.warning("Rolled back management %s after failed registration of %s", management_id, email)
            raise
        if role == Role.ADMIN:
            self._managements.set_admin(management_id, user_id)

        user = User(
            user_id=user_id,
            email=email,
            password_hash=None,
            name=name,
            management_id=management_id,
            role=role,
            email_domain=email_domain,
            created_at=now,
            updated_at=now,
        )
        logger.info("Registered %s as %s of %s", email, role.value, management_id)
        return AuthResult(user=user, session=_session_for(user))

    def _activate(self, invited: User, *, password: str, name: str) -> AuthResult:
        """First sign-up of an account an admin created through the team endpoints."""
        now = self._clock()
        name = name or invited.name
        self._users.activate(invited.user_id, password_hash=generate_password_hash(password), name=name, now=now)
        user = replace(invited, password_hash=None, name=name, updated_at=now)
        logger.info("Activated invited account %s as %s of %s", user.email, user.role.value, user.management_id)
        return AuthResult(user=user, session=_session_for(user))

    def authenticate(self, email, password) -> AuthResult:
        if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
            raise ValidationError("Email and password are required")

        user = self._users.get_by_email(email.strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")
        if not user.password_hash:
            raise AuthenticationError("This account does not have a password set; register with this email to activate it")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # e.g. placeholder or corrupted hash values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid email or password")

        self._users.touch(user.user_id, now=self._clock())
        return AuthResult(user=user, session=_session_for(user))


class UserService:
    """Use cases: read and update profiles inside one management."""

    def __init__(self, users: UserRepository, *, clock: Callable[[], datetime] = now_utc):
        self._users = users
        self._clock = clock

    def get_current(self, current: Session) -> User:
        user = self._users.get_by_id(current.user_id)
        if not user or user.management_id != current.management_id:
            raise NotFoundError("User not found")
        return user

    def get_user(self, current: Session, user_id: str) -> User:
        if not is_object_id(user_id):
            raise ValidationError("Invalid userId")

        user = self._users.get_by_id(user_id)
        # Foreign-tenant users are indistinguishable from missing ones
        if not user or user.management_id != current.management_id:
            raise NotFoundError("User not found")
        if user.user_id != current.user_id and not current.is_admin:
            raise AuthorizationError("Forbidden")
        return user

    def list_users(self, current: Session, management_id: str) -> Sequence[User]:
        if management_id != current.management_id:
            raise AuthorizationError("Forbidden")
        return self._users.list_by_management(management_id)

    def update_profile(self, current: Session, *, name=None, picture=None) -> None:
        fields = {}
        if name is not None:
            fields["name"] = require_non_empty(name, "Name")
        if picture is not None:
            fields["picture"] = optional_str(picture, "Picture")

        if not self._users.update_profile(current.user_id, fields=fields, now=self._clock()):
            raise NotFoundError("User not found")


class TeamService:
    """Admin-only membership management: invite users and assign their role."""

    def __init__(
        self,
        users: UserRepository,
        managements: ManagementRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._users = users
        self._managements = managements
        self._clock = clock

    def _require_admin(self, current: Session, message: str) -> None:
        if not current.is_admin:
            raise AuthorizationError(message)
        if not self._managements.get(current.management_id):
            raise NotFoundError("Management not found")

    def _member(self, current: Session, user_id) -> User:
        if not is_object_id(user_id):
            raise ValidationError("Invalid userId")
        user = self._users.get_by_id(user_id)
        if not user or user.management_id != current.management_id:
            raise NotFoundError("User not found")
        return user

    def list_members(self, current: Session) -> Sequence[User]:
        self._require_admin(current, "Only admins can access team management")
        return self._users.list_by_management(current.management_id)

    def invite(self, current: Session, *, email, name=None, role=None) -> Tuple[User, bool]:
        """Add a passwordless member, or change the role of an existing one.

        Returns the member and whether it was newly created. The invitee sets a
        password by registering with the same email.
        """
        self._require_admin(current, "Only admins can invite users")
        email = require_email(email)
        name = (optional_str(name, "Name") or "").strip()
        role = parse_role(role if role is not None else Role.STUDENT.value)
        now = self._clock()

        existing = self._users.get_by_email(email)
        if existing:
            if existing.management_id != current.management_id:
                raise ConflictError("User already exists in another management")
            self._guard_own_role(current, existing, role)
            self._users.set_role(existing.user_id, role=role, name=name or None, now=now)
            logger.info("Role of %s set to %s in %s", email, role.value, current.management_id)
            return replace(existing, role=role, name=name or existing.name, updated_at=now), False

        user_id = self._users.create_user(
            email=email,
            password_hash=None,
            name=name,
            management_id=current.management_id,
            role=role,
            email_domain=extract_email_domain(email),
            now=now,
        )
        logger.info("Invited %s as %s of %s", email, role.value, current.management_id)
        return (
            User(
                user_id=user_id,
                email=email,
                password_hash=None,
                name=name,
                management_id=current.management_id,
                role=role,
                email_domain=extract_email_domain(email),
                created_at=now,
                updated_at=now,
            ),
            True,
        )

    def update_role(self, current: Session, *, user_id, role) -> None:
        self._require_admin(current, "Only admins can update user roles")
        if not user_id or not role:
            raise ValidationError("User ID and role are required")
        role = parse_role(role)
        user = self._member(current, user_id)
        self._guard_own_role(current, user, role)
        self._users.set_role(user.user_id, role=role, now=self._clock())
        logger.info("Role of %s set to %s in %s", user.email, role.value, current.management_id)

    def remove(self, current: Session, user_id) -> None:
        self._require_admin(current, "Only admins can remove users")
        if not user_id:
            raise ValidationError("User ID is required")
        user = self._member(current, user_id)
        if user.user_id == current.user_id:
            raise ValidationError("You cannot remove yourself")
        management = self._managements.get(current.management_id)
        if management and management.admin_id == user.user_id:
            raise ValidationError("Cannot remove the management admin")

        self._users.delete(user.user_id)
        logger.info("Removed %s from %s", user.email, current.management_id)

    @staticmethod
    def _guard_own_role(current: Session, user: User, role: Role) -> None:
        if user.user_id == current.user_id and role != Role.ADMIN:
            raise ValidationError("You cannot remove your own admin access")


def parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role. Must be one of: {', '.join(r.value for r in Role)}")
