"""Unit tests for credit planning and CreditService."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from resort_core.models import CreditDraw, CreditType, UserCredit
from resort_core.services.credits import CreditService, plan_credit_application

NOW = datetime(2026, 1, 6, 9, 0, tzinfo=timezone.utc)


def _credit(credit_id: str, remaining: int, expires_in_days: int, **overrides: Any) -> UserCredit:
    values: dict[str, Any] = {
        "credit_id": credit_id,
        "user_id": "user-1",
        "amount": remaining,
        "remaining": remaining,
        "credit_type": CreditType.CANCELLATION_CREDIT,
        "expires_at": NOW + timedelta(days=expires_in_days),
        "created_at": NOW - timedelta(days=10),
    }
    values.update(overrides)
    return UserCredit(**values)


class TestPlanCreditApplication:
    def test_soonest_expiry_first(self) -> None:
        credits = [_credit("CR-LATE", 5000, 300), _credit("CR-SOON", 2000, 30)]

        draws = plan_credit_application(credits, 4000, NOW)

        assert draws == [
            CreditDraw(credit_id="CR-SOON", previous_remaining=2000, amount=2000),
            CreditDraw(credit_id="CR-LATE", previous_remaining=5000, amount=2000),
        ]

    def test_never_exceeds_requested(self) -> None:
        draws = plan_credit_application([_credit("CR-1", 5000, 30)], 1200, NOW)

        assert sum(d.amount for d in draws) == 1200
        assert draws[0].new_remaining == 3800

    def test_never_exceeds_balance(self) -> None:
        draws = plan_credit_application([_credit("CR-1", 500, 30)], 1200, NOW)

        assert sum(d.amount for d in draws) == 500

    def test_skips_expired_and_used_credits(self) -> None:
        credits = [
            _credit("CR-EXPIRED", 1000, -1),
            _credit("CR-USED", 0, 30, used_at=NOW),
        ]

        assert plan_credit_application(credits, 1000, NOW) == []

    def test_nothing_requested(self) -> None:
        assert plan_credit_application([_credit("CR-1", 500, 30)], 0, NOW) == []


def _grant(service: CreditService, credit: UserCredit) -> UserCredit:
    assert service.db.transact_write([service.grant_tx(credit)])
    return credit


class TestCreditService:
    @pytest.fixture
    def service(self, db: Any) -> CreditService:
        return CreditService(db)

    def test_grant_and_read_balance(self, service: CreditService) -> None:
        credit = service.build_credit(
            user_id="user-1",
            amount=3000,
            credit_type=CreditType.POOL_TICKET_CREDIT,
            source_booking_id="BK-1",
            now=NOW,
            valid_days=90,
        )
        _grant(service, credit)
        _grant(
            service,
            service.build_credit("user-1", 1000, CreditType.CANCELLATION_CREDIT, "BK-2", NOW, 365)
        )

        balance = service.get_user_credits("user-1", NOW)

        assert balance.total == 4000
        assert [c.amount for c in balance.credits] == [3000, 1000]
        assert balance.credits[0].expires_at == NOW + timedelta(days=90)
        assert credit.credit_id.startswith("CR-")

    def test_expired_credits_are_not_usable(self, service: CreditService) -> None:
        _grant(
            service,
            service.build_credit("user-1", 1000, CreditType.CANCELLATION_CREDIT, "BK-1", NOW, 1)
        )

        later = NOW + timedelta(days=2)

        assert service.get_user_credits("user-1", later).total == 0

    def test_draw_consumes_credit(self, service: CreditService) -> None:
        credit = _grant(
            service,
            service.build_credit("user-1", 1000, CreditType.CANCELLATION_CREDIT, "BK-1", NOW, 30)
        )
        draw = CreditDraw(credit_id=credit.credit_id, previous_remaining=1000, amount=1000)

        assert service.db.transact_write([service.draw_tx(draw, NOW)])

        balance = service.get_user_credits("user-1", NOW)
        assert balance.total == 0
        stored = service.db.get_item("user-credits", {"credit_id": credit.credit_id})
        assert stored["used_at"] == NOW.isoformat()

    def test_stale_draw_is_rejected(self, service: CreditService) -> None:
        credit = _grant(
            service,
            service.build_credit("user-1", 1000, CreditType.CANCELLATION_CREDIT, "BK-1", NOW, 30)
        )
        first = CreditDraw(credit_id=credit.credit_id, previous_remaining=1000, amount=600)
        stale = CreditDraw(credit_id=credit.credit_id, previous_remaining=1000, amount=600)

        assert service.db.transact_write([service.draw_tx(first, NOW)])
        assert not service.db.transact_write([service.draw_tx(stale, NOW)])
        assert service.get_user_credits("user-1", NOW).total == 400
