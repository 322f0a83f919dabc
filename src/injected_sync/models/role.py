"""Coordination role of one invocation."""

from enum import Enum


class Role(str, Enum):
    """Role an invocation holds in the shared-watcher protocol.

    An invocation starts UNDETERMINED and settles as either LEADER or
    CLIENT. A CLIENT may later be promoted to LEADER. A LEADER never
    goes back.
    """

    UNDETERMINED = "undetermined"
    CLIENT = "client"
    LEADER = "leader"

    def can_become(self, target: "Role") -> bool:
        """Return True if moving from this role to target is allowed."""
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[Role, frozenset[Role]] = {
    Role.UNDETERMINED: frozenset({Role.CLIENT, Role.LEADER}),
    Role.CLIENT: frozenset({Role.LEADER}),
    Role.LEADER: frozenset(),
}
