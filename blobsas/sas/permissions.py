"""SAS permission letters and their canonical ordering.

The permission string is part of the signed string, so it must be
byte-exact: letters are always emitted in the order ``r, a, c, w, d, l``
no matter how the set was built.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterator

from blobsas.exceptions import InvalidPermissionChar
from blobsas.url.identity import ResourceScope


class SASPermission(str, Enum):
    """SAS permission flags, declared in canonical order."""

    READ = "r"
    ADD = "a"
    CREATE = "c"
    WRITE = "w"
    DELETE = "d"
    LIST = "l"


CANONICAL_ORDER = tuple(SASPermission)

SCOPE_PERMISSIONS = {
    ResourceScope.CONTAINER: frozenset(SASPermission),
    ResourceScope.BLOB: frozenset(SASPermission) - {SASPermission.LIST},
}


@dataclass(frozen=True)
class PermissionSet:
    """Immutable set of permissions valid for one resource scope."""

    permissions: FrozenSet[SASPermission] = frozenset()
    scope: ResourceScope = ResourceScope.CONTAINER

    def __post_init__(self):
        """Reject permissions the scope does not allow."""
        allowed = SCOPE_PERMISSIONS[self.scope]
        for permission in self.permissions:
            if permission not in allowed:
                raise InvalidPermissionChar(permission.value, self.scope.name.lower())

    @classmethod
    def of(
        cls,
        *permissions: SASPermission,
        scope: ResourceScope = ResourceScope.CONTAINER,
    ) -> "PermissionSet":
        """Build a set from permission members in any order."""
        return cls(frozenset(SASPermission(p) for p in permissions), scope)

    @classmethod
    def from_flags(
        cls,
        *,
        read: bool = False,
        add: bool = False,
        create: bool = False,
        write: bool = False,
        delete: bool = False,
        list: bool = False,  # pylint: disable=redefined-builtin
        scope: ResourceScope = ResourceScope.CONTAINER,
    ) -> "PermissionSet":
        """Build a set from named boolean flags."""
        flags = {
            SASPermission.READ: read,
            SASPermission.ADD: add,
            SASPermission.CREATE: create,
            SASPermission.WRITE: write,
            SASPermission.DELETE: delete,
            SASPermission.LIST: list,
        }
        return cls(frozenset(p for p, enabled in flags.items() if enabled), scope)

    @classmethod
    def parse(cls, text: str, scope: ResourceScope = ResourceScope.CONTAINER) -> "PermissionSet":
        """
        Parse a permission string such as ``"racwdl"``.

        Letters may appear in any order; repeats collapse.

        Raises:
            InvalidPermissionChar: For an unknown letter or one the scope forbids
        """
        allowed = SCOPE_PERMISSIONS[scope]
        permissions = set()
        for char in text:
            try:
                permission = SASPermission(char)
            except ValueError:
                raise InvalidPermissionChar(char) from None
            if permission not in allowed:
                raise InvalidPermissionChar(char, scope.name.lower())
            permissions.add(permission)
        return cls(frozenset(permissions), scope)

    def __contains__(self, permission: object) -> bool:
        return permission in self.permissions

    def __iter__(self) -> Iterator[SASPermission]:
        return (p for p in CANONICAL_ORDER if p in self.permissions)

    def __len__(self) -> int:
        return len(self.permissions)

    def __bool__(self) -> bool:
        return bool(self.permissions)

    def to_canonical_string(self) -> str:
        """Permission letters in ``r, a, c, w, d, l`` order."""
        return "".join(p.value for p in self)

    def __str__(self) -> str:
        return self.to_canonical_string()

    def is_valid_for(self, scope: ResourceScope) -> bool:
        """Whether every permission in the set is allowed for ``scope``."""
        return self.permissions <= SCOPE_PERMISSIONS[scope]
