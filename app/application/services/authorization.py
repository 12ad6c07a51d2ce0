"""Route authorization policy.

One ordered table decides access for every request before routing happens.
Rules are checked top to bottom and the first rule whose path pattern and
method match wins, so the most specific rules come first.

Patterns are exact paths, or a prefix ending in ``/**`` which matches the
prefix itself and everything below it.
"""

import enum
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

from app.application.services.claims import has_any_role
from app.domain.models.role import RoleType


class Requirement(str, enum.Enum):
    PERMIT_ALL = "permit_all"
    AUTHENTICATED = "authenticated"
    ANY_ROLE = "any_role"


class Decision(str, enum.Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


WRITE_METHODS = frozenset({"POST", "PUT", "DELETE"})


@dataclass(frozen=True)
class PolicyRule:
    patterns: Tuple[str, ...]
    requirement: Requirement
    roles: Tuple[RoleType, ...] = ()
    methods: Optional[FrozenSet[str]] = None  # None matches any method

    def matches(self, path: str, method: str) -> bool:
        if self.methods is not None and method.upper() not in self.methods:
            return False
        return any(path_matches(pattern, path) for pattern in self.patterns)


def path_matches(pattern: str, path: str) -> bool:
    if pattern.endswith("/**"):
        base = pattern[:-3]
        return path == base or path.startswith(base + "/")
    return path == pattern


ADMIN_ONLY = (RoleType.ADMIN,)
MANAGEMENT = (RoleType.ADMIN, RoleType.MANAGER)
ANY_MEMBER = (RoleType.USER, RoleType.MANAGER, RoleType.ADMIN)

POLICY: Tuple[PolicyRule, ...] = (
    # Public pages, health/info endpoints and static assets
    PolicyRule(("/", "/home", "/public/**"), Requirement.PERMIT_ALL),
    PolicyRule(("/health", "/actuator/**"), Requirement.PERMIT_ALL),
    PolicyRule(("/api/public/**",), Requirement.PERMIT_ALL),
    PolicyRule(("/css/**", "/js/**", "/images/**"), Requirement.PERMIT_ALL),
    # Login flow endpoints must be reachable before a session exists
    PolicyRule(("/oauth2/authorization/**", "/login/oauth2/code/**"), Requirement.PERMIT_ALL),
    # API (bearer token)
    PolicyRule(("/api/admin/**",), Requirement.ANY_ROLE, ADMIN_ONLY),
    PolicyRule(("/api/manager/**",), Requirement.ANY_ROLE, MANAGEMENT, methods=WRITE_METHODS),
    PolicyRule(("/api/manager/**",), Requirement.ANY_ROLE, MANAGEMENT),
    PolicyRule(("/api/user/**",), Requirement.ANY_ROLE, ANY_MEMBER),
    # Web pages (login session)
    PolicyRule(("/dashboard", "/profile", "/admin", "/admin/**"), Requirement.AUTHENTICATED),
    # Everything else
    PolicyRule(("/**",), Requirement.AUTHENTICATED),
)


def find_rule(path: str, method: str, policy: Iterable[PolicyRule] = POLICY) -> PolicyRule:
    for rule in policy:
        if rule.matches(path, method):
            return rule
    # "/**" closes the table, this is only reached with a custom policy
    return PolicyRule(("/**",), Requirement.AUTHENTICATED)


def evaluate(
    path: str,
    method: str,
    authenticated: bool,
    authorities: Iterable[str] = (),
    policy: Iterable[PolicyRule] = POLICY,
) -> Decision:
    """Decide whether a caller may reach ``method path``."""
    rule = find_rule(path, method, policy)

    if rule.requirement is Requirement.PERMIT_ALL:
        return Decision.ALLOW
    if not authenticated:
        return Decision.UNAUTHENTICATED
    if rule.requirement is Requirement.AUTHENTICATED:
        return Decision.ALLOW
    if has_any_role(authorities, *(role.value for role in rule.roles)):
        return Decision.ALLOW
    return Decision.FORBIDDEN
