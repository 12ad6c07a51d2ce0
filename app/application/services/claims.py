"""Claims conversion: turn verified token claims into granted authorities.

Keycloak places roles in three places:

* ``realm_access.roles``: realm-wide roles
* ``resource_access.<client-id>.roles``: per-client roles
* ``groups``: group membership, when a groups mapper is configured

Realm and client roles become ``ROLE_<NAME>``, groups become ``GROUP_<NAME>``.
A missing or malformed claim contributes nothing; it is never an error.
"""

from typing import Any, Iterable, List, Mapping

ROLE_PREFIX = "ROLE_"
GROUP_PREFIX = "GROUP_"


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _roles_of(access: Any) -> List[Any]:
    if not isinstance(access, Mapping):
        return []
    return _as_list(access.get("roles"))


def realm_roles(claims: Mapping[str, Any]) -> List[str]:
    """Realm roles as they appear in the token, duplicates and order preserved."""
    return [str(role) for role in _roles_of(claims.get("realm_access"))]


def _prefixed(prefix: str, values: Iterable[Any]) -> List[str]:
    return [f"{prefix}{str(value).upper()}" for value in values]


def extract_authorities(claims: Mapping[str, Any]) -> List[str]:
    """Return the de-duplicated authority set for a verified token's claims."""
    authorities: List[str] = []

    authorities += _prefixed(ROLE_PREFIX, _roles_of(claims.get("realm_access")))

    resource_access = claims.get("resource_access")
    if isinstance(resource_access, Mapping):
        for client_access in resource_access.values():
            authorities += _prefixed(ROLE_PREFIX, _roles_of(client_access))

    authorities += _prefixed(GROUP_PREFIX, _as_list(claims.get("groups")))

    # dict keeps first-seen order while dropping duplicates
    return list(dict.fromkeys(authorities))


def has_any_role(authorities: Iterable[str], *roles: str) -> bool:
    granted = set(authorities)
    return any(f"{ROLE_PREFIX}{role.upper()}" in granted for role in roles)
