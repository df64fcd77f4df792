"""
Target Tracker

Computes progress toward the savings target: percentage reached, amount
still missing, end date of the window and days left.

The window is `target_months` calendar months from the start date. Month
arithmetic uses dateutil, so 31 January + 1 month is 29 February in a leap
year rather than a date in March.
"""

from datetime import date, datetime
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, ConfigDict

from fundlove.models.ledger import TargetPatch, utc_now


class TargetProgress(BaseModel):
    """Derived progress values for one target and balance."""
    model_config = ConfigDict(frozen=True)

    target_amount: int
    target_months: int
    start_date: date
    end_date: date
    balance: int
    progress_percent: float
    is_achieved: bool
    remaining_amount: int
    remaining_days: int

    @property
    def display_percent(self) -> float:
        """Progress clamped to [0, 100] for drawing a progress bar."""
        return min(max(self.progress_percent, 0.0), 100.0)

    @property
    def is_overdue(self) -> bool:
        return not self.is_achieved and self.remaining_days == 0


def end_date_for(start_date: date, target_months: int) -> date:
    return start_date + relativedelta(months=target_months)


def progress_percent(balance: int, target_amount: int) -> float:
    if target_amount <= 0:
        return 0.0
    return balance / target_amount * 100


def compute_progress(
    target_amount: int,
    target_months: int,
    start_date: date,
    balance: int,
    today: date,
) -> TargetProgress:
    """
    Derive progress for a target.

    remaining_days counts whole days until the end date, rounded up, and
    is 0 once the target is achieved or the end date has passed.
    """
    end_date = end_date_for(start_date, target_months)
    is_achieved = balance >= target_amount

    if is_achieved:
        remaining_days = 0
        remaining_amount = 0
    else:
        remaining_days = max(0, (end_date - today).days)
        remaining_amount = target_amount - balance

    return TargetProgress(
        target_amount=target_amount,
        target_months=target_months,
        start_date=start_date,
        end_date=end_date,
        balance=balance,
        progress_percent=progress_percent(balance, target_amount),
        is_achieved=is_achieved,
        remaining_amount=remaining_amount,
        remaining_days=remaining_days,
    )


def restart_window(
    target_amount: int,
    target_months: int,
    now: Optional[datetime] = None,
) -> TargetPatch:
    """
    Build the update for a settings save.

    Every save restarts the countdown from today; it does not extend the
    previous deadline.
    """
    now = now or utc_now()
    return TargetPatch(
        target_amount=target_amount,
        target_months=target_months,
        start_date=now.date(),
        updated_at=now,
    )
