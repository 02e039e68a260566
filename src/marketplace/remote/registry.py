"""Status registry: one place to poll any entity kind by status."""

from marketplace.lifecycle import EntityKind
from marketplace.remote.base import RemoteEntity
from marketplace.remote.orders import RemoteOrders
from marketplace.remote.refunds import RemoteRefunds
from marketplace.remote.returns import RemoteReturns


class StatusRegistry:
    def __init__(self, orders: RemoteOrders, returns: RemoteReturns, refunds: RemoteRefunds) -> None:
        self._remotes: dict[EntityKind, RemoteEntity] = {
            EntityKind.ORDER: orders,
            EntityKind.RETURN: returns,
            EntityKind.REFUND: refunds,
        }

    @classmethod
    def connect(cls, transport=None, endpoints=None) -> "StatusRegistry":
        return cls(
            RemoteOrders(transport, endpoints),
            RemoteReturns(transport, endpoints),
            RemoteRefunds(transport, endpoints),
        )

    def remote(self, kind: EntityKind) -> RemoteEntity:
        return self._remotes[kind]

    def statuses(self, kind: EntityKind):
        """Every lifecycle state of ``kind``, in declaration order."""
        return list(self._remotes[kind].status_type)

    def poll_tokens(self, kind: EntityKind, status, ascending: bool = True):
        return self._remotes[kind].poll_tokens(status, ascending)

    def get_detail(self, kind: EntityKind, token: str):
        return self._remotes[kind].get_detail(token)
