"""User credits: granted on some cancellations, consumed by later bookings."""

import datetime as dt
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from resort_core.models import CreditBalance, CreditDraw, CreditType, UserCredit

from .dynamodb import to_item, to_model

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


def plan_credit_application(
    credits: Iterable[UserCredit],
    requested: int,
    now: dt.datetime,
) -> list[CreditDraw]:
    """Decide how much to draw from each credit, soonest expiry first.

    The total drawn never exceeds ``requested`` nor the sum of usable
    balances.

    Args:
        credits: Credits of one user, any order
        requested: Maximum amount to apply, in cents
        now: Time used to skip expired credits

    Returns:
        Draws in consumption order (may be empty)
    """
    usable = sorted(
        (c for c in credits if c.is_usable(now)),
        key=lambda c: (c.expires_at, c.created_at),
    )

    draws: list[CreditDraw] = []
    outstanding = max(requested, 0)
    for credit in usable:
        if outstanding == 0:
            break
        amount = min(credit.remaining, outstanding)
        draws.append(
            CreditDraw(
                credit_id=credit.credit_id,
                previous_remaining=credit.remaining,
                amount=amount,
            )
        )
        outstanding -= amount

    return draws


class CreditService:
    """Reads user credits and builds their transaction items."""

    TABLE = "user-credits"
    USER_INDEX = "user_id-index"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get_user_credits(self, user_id: str, now: dt.datetime) -> CreditBalance:
        """Usable credits of a user, soonest expiry first.

        Args:
            user_id: Owner of the credits
            now: Time used to skip expired credits

        Returns:
            CreditBalance with the usable total
        """
        items = self.db.query_by_gsi(
            table=self.TABLE,
            index_name=self.USER_INDEX,
            partition_key_name="user_id",
            partition_key_value=user_id,
        )
        credits = sorted(
            (c for c in (to_model(UserCredit, i) for i in items) if c.is_usable(now)),
            key=lambda c: c.expires_at,
        )
        return CreditBalance(
            user_id=user_id,
            total=sum(c.remaining for c in credits),
            credits=credits,
        )

    def build_credit(
        self,
        user_id: str,
        amount: int,
        credit_type: CreditType,
        source_booking_id: str,
        now: dt.datetime,
        valid_days: int,
    ) -> UserCredit:
        """New credit valid for ``valid_days`` from ``now``."""
        return UserCredit(
            credit_id=f"CR-{uuid.uuid4().hex[:12].upper()}",
            user_id=user_id,
            amount=amount,
            remaining=amount,
            credit_type=credit_type,
            expires_at=now + dt.timedelta(days=valid_days),
            source_booking_id=source_booking_id,
            created_at=now,
        )

    def grant_tx(self, credit: UserCredit) -> dict[str, Any]:
        """Put a newly granted credit."""
        return self.db.put_tx(
            self.TABLE,
            to_item(credit),
            condition_expression="attribute_not_exists(credit_id)",
        )

    def draw_tx(self, draw: CreditDraw, now: dt.datetime) -> dict[str, Any]:
        """Consume part of a credit.

        Guarded on the balance read at planning time, so a concurrent
        booking spending the same credit cancels the transaction.
        """
        update_expression = "SET remaining = :new"
        values: dict[str, Any] = {":new": draw.new_remaining, ":prev": draw.previous_remaining}
        if draw.new_remaining == 0:
            update_expression += ", used_at = :now"
            values[":now"] = now.isoformat()

        return self.db.update_tx(
            self.TABLE,
            {"credit_id": draw.credit_id},
            update_expression=update_expression,
            expression_attribute_values=values,
            condition_expression="remaining = :prev",
        )
