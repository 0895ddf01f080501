"""Domain events emitted by the bidding and settlement core.

Events are buffered in an EventOutbox while the transaction is open and handed
to the broadcaster only after commit; a rolled-back operation emits nothing.
"""

from dataclasses import dataclass, field
from typing import Any

PUBLIC_TOPIC = "public"
ADMINS_TOPIC = "admins"


def auction_topic(auction_id: int) -> str:
    return f"auction:{auction_id}"


def account_topic(account_id: str) -> str:
    return f"account:{account_id}"


@dataclass(frozen=True)
class DomainEvent:
    name: str
    topic: str
    payload: dict[str, Any]

    def message(self) -> dict[str, Any]:
        return {"event": self.name, **self.payload}


@dataclass
class EventOutbox:
    """Events collected during one transaction, in emission order."""

    events: list[DomainEvent] = field(default_factory=list)

    def add(self, event: DomainEvent) -> None:
        self.events.append(event)

    def named(self, name: str) -> list[DomainEvent]:
        return [e for e in self.events if e.name == name]

    def __len__(self) -> int:
        return len(self.events)


def bid_accepted(auction_id: int, amount: int, bidder_id: str) -> DomainEvent:
    return DomainEvent(
        "bid_accepted",
        auction_topic(auction_id),
        {"auction_id": auction_id, "amount": amount, "bidder_id": bidder_id},
    )


def auction_closed(
    auction_id: int, winner_id: str | None, final_price: int | None
) -> DomainEvent:
    return DomainEvent(
        "auction_closed",
        auction_topic(auction_id),
        {"auction_id": auction_id, "winner_id": winner_id, "final_price": final_price},
    )


def deposit_refunded(account_id: str, auction_id: int, amount: int) -> DomainEvent:
    return DomainEvent(
        "deposit_refunded",
        account_topic(account_id),
        {"account_id": account_id, "auction_id": auction_id, "amount": amount},
    )


def deposit_held(account_id: str, auction_id: int, amount: int) -> DomainEvent:
    return DomainEvent(
        "deposit_held",
        account_topic(account_id),
        {"account_id": account_id, "auction_id": auction_id, "amount": amount},
    )


def payment_settled(
    auction_id: int, winner_id: str, seller_id: str, amounts: dict[str, int]
) -> DomainEvent:
    return DomainEvent(
        "payment_settled",
        auction_topic(auction_id),
        {
            "auction_id": auction_id,
            "winner_id": winner_id,
            "seller_id": seller_id,
            "amounts": amounts,
        },
    )


def payment_insufficient(auction_id: int, winner_id: str, amount_due: int) -> DomainEvent:
    return DomainEvent(
        "payment_insufficient",
        account_topic(winner_id),
        {"auction_id": auction_id, "winner_id": winner_id, "amount_due": amount_due},
    )


def auction_approved(auction_id: int, title: str, current_price: int) -> DomainEvent:
    return DomainEvent(
        "auction_approved",
        PUBLIC_TOPIC,
        {"auction_id": auction_id, "title": title, "current_price": current_price},
    )


def topup_requested(topup_id: int, account_id: str, amount: int) -> DomainEvent:
    return DomainEvent(
        "topup_requested",
        ADMINS_TOPIC,
        {"topup_id": topup_id, "account_id": account_id, "amount": amount},
    )


def notification(account_id: str, message: str, auction_id: int | None) -> DomainEvent:
    return DomainEvent(
        "notification",
        account_topic(account_id),
        {"message": message, "auction_id": auction_id},
    )
