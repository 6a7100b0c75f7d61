"""Order state machine: legal edges, who may trigger them, and mirror effects.

    pending ──provider──> accepted ──system(payment)──> in_progress ──system(expiry)──> completed
       │  └──provider──> rejected      │
       └────renter────> cancelled <──renter
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from app.models.enums import EquipmentStatus, OrderStatus
from app.models.order import Order
from app.services.exceptions import ForbiddenError, InvalidTransitionError


class ActorRole(str, Enum):
    RENTER = "renter"
    PROVIDER = "provider"
    SYSTEM = "system"


@dataclass(frozen=True)
class Actor:
    """Caller identity for an order operation."""

    actor_id: UUID | None
    is_admin: bool = False
    is_system: bool = False

    @classmethod
    def system(cls) -> "Actor":
        return cls(actor_id=None, is_system=True)

    def can_view(self, order: Order) -> bool:
        if self.is_system or self.is_admin:
            return True
        return self.actor_id in (order.renter_id, order.provider_id)


@dataclass(frozen=True)
class Transition:
    from_status: OrderStatus
    to_status: OrderStatus
    role: ActorRole

    @property
    def label(self) -> str:
        return f"{self.from_status.value}->{self.to_status.value}"


TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], Transition] = {
    (t.from_status, t.to_status): t
    for t in (
        Transition(OrderStatus.PENDING, OrderStatus.ACCEPTED, ActorRole.PROVIDER),
        Transition(OrderStatus.PENDING, OrderStatus.REJECTED, ActorRole.PROVIDER),
        Transition(OrderStatus.PENDING, OrderStatus.CANCELLED, ActorRole.RENTER),
        Transition(OrderStatus.ACCEPTED, OrderStatus.IN_PROGRESS, ActorRole.SYSTEM),
        Transition(OrderStatus.ACCEPTED, OrderStatus.CANCELLED, ActorRole.RENTER),
        Transition(OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED, ActorRole.SYSTEM),
    )
}

# Terminal targets that may be requested again without error (sweeper
# redelivery, client retries). Re-accept and re-reject are not in here.
IDEMPOTENT_TARGETS = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

# Mirror value written when an order enters the given status
MIRROR_ON_ENTER: dict[OrderStatus, EquipmentStatus] = {
    OrderStatus.ACCEPTED: EquipmentStatus.LOCKED,
    OrderStatus.IN_PROGRESS: EquipmentStatus.LOCKED,
    OrderStatus.COMPLETED: EquipmentStatus.PENDING_RETURN,
}

# Entering these releases a Locked mirror back to Available
RELEASING_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REJECTED})


class OrderStateMachine:
    """Validates status changes against the transition table."""

    def is_idempotent_repeat(self, current: OrderStatus, target: OrderStatus) -> bool:
        """True when ``target`` was already reached and repeating it is a no-op."""
        return current == target and target in IDEMPOTENT_TARGETS

    def resolve(self, current: OrderStatus, target: OrderStatus) -> Transition:
        """Return the edge from ``current`` to ``target``.

        Raises:
            InvalidTransitionError: the pair is not in the table
        """
        transition = TRANSITIONS.get((current, target))
        if transition is None:
            raise InvalidTransitionError(current, target)
        return transition

    def authorize(self, transition: Transition, order: Order, actor: Actor) -> None:
        """Check that ``actor`` may trigger ``transition`` on ``order``.

        Admins bypass ownership but never act as the system.

        Raises:
            ForbiddenError: actor lacks the role the edge requires
        """
        if transition.role is ActorRole.SYSTEM:
            if not actor.is_system:
                raise ForbiddenError(
                    f"Transition {transition.label} is performed by the system only"
                )
            return

        if actor.is_admin or actor.is_system:
            return

        if transition.role is ActorRole.RENTER and actor.actor_id == order.renter_id:
            return
        if transition.role is ActorRole.PROVIDER and actor.actor_id == order.provider_id:
            return

        raise ForbiddenError(
            f"Only the {transition.role.value} may move this order to {transition.to_status.value}"
        )

    def authorize_repeat(self, target: OrderStatus, order: Order, actor: Actor) -> None:
        """Authorize a no-op repeat as if ``actor`` had requested the edge into ``target``.

        Raises:
            ForbiddenError: actor could not have triggered any edge into ``target``
        """
        edges = [t for t in TRANSITIONS.values() if t.to_status is target]
        # Every edge into a given target requires the same role
        self.authorize(edges[0], order, actor)

    def mirror_after(
        self, transition: Transition, current_mirror: EquipmentStatus
    ) -> EquipmentStatus | None:
        """Mirror value to write after ``transition``, or None to leave it alone.

        Maintenance and Offline are never overwritten. A release only applies
        when the mirror is Locked; the caller still has to make sure no other
        rental is holding it.
        """
        if current_mirror.is_owner_controlled:
            return None
        target = transition.to_status
        if target in MIRROR_ON_ENTER:
            return MIRROR_ON_ENTER[target]
        if target in RELEASING_STATUSES and current_mirror is EquipmentStatus.LOCKED:
            return EquipmentStatus.AVAILABLE
        return None


order_state_machine = OrderStateMachine()
