"""
Permission system for the LMS backend

Main components:
- principal: the acting user with role and active enrollments
- core: the authorization guard (authorize / require)
- auth: HTTP Basic authentication and Principal creation
"""

from .principal import (
    Principal,
    ROLE_STUDENT,
    ROLE_INSTRUCTOR,
    ROLE_ADMIN,
    AUTHOR_ROLES,
)

from .core import (
    Action,
    Allow,
    Deny,
    Decision,
    CourseOwnership,
    ResourceKind,
    ResourceRef,
    authorize,
    require,
)

from .auth import (
    get_current_principal,
    AuthenticationService,
    PrincipalBuilder,
)

__all__ = [
    # Principal
    "Principal",
    "ROLE_STUDENT",
    "ROLE_INSTRUCTOR",
    "ROLE_ADMIN",
    "AUTHOR_ROLES",

    # Guard
    "Action",
    "Allow",
    "Deny",
    "Decision",
    "CourseOwnership",
    "ResourceKind",
    "ResourceRef",
    "authorize",
    "require",

    # Authentication
    "get_current_principal",
    "AuthenticationService",
    "PrincipalBuilder",
]
