from __future__ import annotations

from typing import Dict, List, Optional, Set

from composer_repo.domain.models import AccessScope, User

ROLE_USER = "ROLE_USER"
ROLE_MAINTAINER = "ROLE_MAINTAINER"
ROLE_ADMIN = "ROLE_ADMIN"

DEFAULT_ROLE_HIERARCHY: Dict[str, List[str]] = {
    ROLE_ADMIN: [ROLE_MAINTAINER],
    ROLE_MAINTAINER: [ROLE_USER],
}


class AuthorizationChecker:
    """
    Role check used to decide which metadata graph a user reads.
    """

    def __init__(self, hierarchy: Optional[Dict[str, List[str]]] = None):
        self.hierarchy = DEFAULT_ROLE_HIERARCHY if hierarchy is None else hierarchy

    def _reachable_roles(self, roles: List[str]) -> Set[str]:
        reachable: Set[str] = set()
        pending = list(roles)
        while pending:
            role = pending.pop()
            if role in reachable:
                continue
            reachable.add(role)
            pending.extend(self.hierarchy.get(role, []))
        return reachable

    def is_granted(self, user: Optional[User], role: str) -> bool:
        if user is None:
            return False
        return role in self._reachable_roles(user.roles)

    def is_privileged(self, user: Optional[User]) -> bool:
        return self.is_granted(user, ROLE_MAINTAINER)

    def resolve_scope(self, user: Optional[User]) -> AccessScope:
        """Map a user to the scope the metadata cache is keyed by."""
        return AccessScope.resolve(user, self.is_privileged(user))
