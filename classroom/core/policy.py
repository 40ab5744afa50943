"""
Authorization policy: tenant isolation and role rules.

WHY: Every router asks this module what a request may read or write,
instead of repeating organization and role checks per route. All inputs
are explicit (identity, action, resource, target row, payload) so the
rules can be unit tested without a request or a database.

Usage:
    identity = Depends(get_current_identity)
    enforce(identity, Action.UPDATE, Resource.CLASS, target=class_row)
    rows = await dao.list(*scope_filter(identity, Resource.CLASS))
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import select

from classroom.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
    UserNotFoundError,
    DepartmentNotFoundError,
    SubjectNotFoundError,
    ClassNotFoundError,
    EnrollmentNotFoundError,
    OrganizationNotFoundError,
)
from classroom.models.user import User, UserRole
from classroom.models.organization import Organization
from classroom.models.department import Department
from classroom.models.subject import Subject
from classroom.models.class_model import Class
from classroom.models.enrollment import Enrollment

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    READ_LIST = "read-list"
    READ_ONE = "read-one"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class Resource(str, enum.Enum):
    DEPARTMENT = "department"
    SUBJECT = "subject"
    CLASS = "class"
    USER = "user"
    ENROLLMENT = "enrollment"
    ORGANIZATION = "organization"


WRITE_ACTIONS = {Action.CREATE, Action.UPDATE, Action.DELETE}

NOT_FOUND_ERRORS: Dict[Resource, Type[ResourceNotFoundError]] = {
    Resource.DEPARTMENT: DepartmentNotFoundError,
    Resource.SUBJECT: SubjectNotFoundError,
    Resource.CLASS: ClassNotFoundError,
    Resource.USER: UserNotFoundError,
    Resource.ENROLLMENT: EnrollmentNotFoundError,
    Resource.ORGANIZATION: OrganizationNotFoundError,
}


@dataclass(frozen=True)
class Identity:
    """The (user, role, organization) triple resolved from a session."""

    user_id: str
    role: UserRole
    organization_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(user_id=user.id, role=user.role, organization_id=user.organization_id)


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check."""

    allowed: bool
    reason: Optional[str] = None
    error: Optional[Type[AppException]] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, error: Type[AppException]) -> "Decision":
        return cls(allowed=False, reason=reason, error=error)


def _payload_value(payload: Optional[Dict[str, Any]], *keys: str) -> Any:
    if not payload:
        return None
    for key in keys:
        if key in payload and payload[key] is not None:
            value = payload[key]
            return value.value if isinstance(value, enum.Enum) else value
    return None


def _authorize_organization(identity: Identity, action: Action, target: Any) -> Decision:
    if action != Action.READ_ONE:
        return Decision.deny("Organizations cannot be modified here", AuthorizationError)
    target_id = getattr(target, "id", target)
    if target_id != identity.organization_id:
        # WHY: 403 rather than 404; the caller asked for a tenant by id
        return Decision.deny("Access to this organization is forbidden", AuthorizationError)
    return Decision.allow()


def _authorize_user(
    identity: Identity,
    action: Action,
    target: Optional[User],
    payload: Optional[Dict[str, Any]],
) -> Decision:
    if action == Action.CREATE:
        return Decision.deny("Users are created through sign-up", AuthorizationError)

    if action == Action.READ_ONE and target is not None:
        if target.role == UserRole.ADMIN and target.id != identity.user_id:
            return Decision.deny("User not found", UserNotFoundError)
        return Decision.allow()

    if action in (Action.UPDATE, Action.DELETE):
        if not identity.is_admin:
            return Decision.deny("Admin access required", InsufficientPermissionsError)
        if target is not None and target.role == UserRole.ADMIN:
            return Decision.deny("User not found", UserNotFoundError)

    return Decision.allow()


def _authorize_class(
    identity: Identity,
    action: Action,
    target: Optional[Class],
    payload: Optional[Dict[str, Any]],
) -> Decision:
    if action not in WRITE_ACTIONS:
        return Decision.allow()

    if identity.is_admin:
        return Decision.allow()

    if not identity.is_teacher:
        return Decision.deny("Only admins and teachers can manage classes", InsufficientPermissionsError)

    if action != Action.CREATE and target is not None and target.teacher_id != identity.user_id:
        return Decision.deny("Only the assigned teacher can modify this class", AuthorizationError)

    # Teachers cannot hand a class to someone else
    teacher_id = _payload_value(payload, "teacher_id", "teacherId")
    if teacher_id is not None and teacher_id != identity.user_id:
        return Decision.deny("Teachers can only assign classes to themselves", AuthorizationError)

    return Decision.allow()


def _authorize_enrollment(
    identity: Identity,
    action: Action,
    target: Optional[Class],
    payload: Optional[Dict[str, Any]],
) -> Decision:
    if action not in WRITE_ACTIONS:
        return Decision.allow()

    if identity.is_admin:
        return Decision.allow()

    if identity.is_teacher and target is not None and target.teacher_id == identity.user_id:
        return Decision.allow()

    student_id = _payload_value(payload, "student_id", "studentId")
    if identity.is_student and student_id == identity.user_id:
        return Decision.allow()

    return Decision.deny("Not allowed to manage enrollments for this class", AuthorizationError)


def authorize(
    identity: Optional[Identity],
    action: Action,
    resource: Resource,
    target: Any = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Decision:
    """
    Decide whether an identity may perform an action on a resource.

    Args:
        identity: Resolved caller, or None for anonymous requests
        action: What the caller wants to do
        resource: Kind of resource
        target: Existing row the action applies to. For enrollments this is
            the class being enrolled into; for organizations it may be a row
            or an id.
        payload: Incoming write payload (snake_case or camelCase keys)

    Returns:
        Decision (allowed, or denied with a reason and error class)
    """
    if identity is None:
        return Decision.deny("Authentication required", AuthenticationError)

    if resource == Resource.ORGANIZATION:
        return _authorize_organization(identity, action, target)

    # WHY: promoting anyone to admin is never allowed, whoever asks
    if resource == Resource.USER and _payload_value(payload, "role") == UserRole.ADMIN.value:
        return Decision.deny("Cannot assign the admin role", AuthorizationError)

    if target is not None and getattr(target, "organization_id", None) != identity.organization_id:
        return Decision.deny(NOT_FOUND_ERRORS[resource].default_message, NOT_FOUND_ERRORS[resource])

    if resource == Resource.USER:
        return _authorize_user(identity, action, target, payload)

    if resource in (Resource.DEPARTMENT, Resource.SUBJECT):
        if action in WRITE_ACTIONS and not identity.is_admin:
            return Decision.deny("Admin access required", InsufficientPermissionsError)
        return Decision.allow()

    if resource == Resource.CLASS:
        return _authorize_class(identity, action, target, payload)

    if resource == Resource.ENROLLMENT:
        return _authorize_enrollment(identity, action, target, payload)

    return Decision.deny("Unknown resource", AuthorizationError)


def enforce(
    identity: Optional[Identity],
    action: Action,
    resource: Resource,
    target: Any = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Same as authorize, but raises the mapped exception on deny.

    Raises:
        AuthenticationError: No identity
        AuthorizationError: Role or ownership rule failed (403)
        ResourceNotFoundError: Target is outside the caller's tenant or hidden
    """
    decision = authorize(identity, action, resource, target=target, payload=payload)
    if decision.allowed:
        return

    logger.warning(
        "Policy denied %s on %s for user %s: %s",
        action.value,
        resource.value,
        identity.user_id if identity else None,
        decision.reason,
    )
    raise decision.error(
        message=decision.reason,
        action=action.value,
        resource=resource.value,
    )


def scope_filter(identity: Identity, resource: Resource) -> List[Any]:
    """
    Tenant filter predicates for a resource kind.

    WHY: Returned as a list of SQLAlchemy expressions so DAOs can splat them
    into .where() next to their own filters.
    """
    org_id = identity.organization_id

    if resource == Resource.DEPARTMENT:
        return [Department.organization_id == org_id]
    if resource == Resource.SUBJECT:
        return [Subject.organization_id == org_id]
    if resource == Resource.CLASS:
        return [Class.organization_id == org_id]
    if resource == Resource.USER:
        return [User.organization_id == org_id, User.role != UserRole.ADMIN]
    if resource == Resource.ENROLLMENT:
        return [
            Enrollment.class_id.in_(
                select(Class.id).where(Class.organization_id == org_id)
            )
        ]
    if resource == Resource.ORGANIZATION:
        return [Organization.id == org_id]

    raise ValueError(f"No tenant filter for {resource}")


def scoped_payload(identity: Identity, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop any client-supplied organization id and stamp the caller's."""
    scoped = {
        key: value
        for key, value in payload.items()
        if key not in ("organization_id", "organizationId")
    }
    scoped["organization_id"] = identity.organization_id
    return scoped


def require_in_tenant(
    identity: Identity,
    row: Any,
    error: Type[AppException],
    **context: Any,
) -> Any:
    """
    Check a referenced parent row exists and belongs to the caller's tenant.

    WHY: Foreign keys only prove the parent exists somewhere; a subject must
    not point at another organization's department.

    Returns:
        The row, for chaining
    """
    if row is None or row.organization_id != identity.organization_id:
        raise error(**context)
    return row
