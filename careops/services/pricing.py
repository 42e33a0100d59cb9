"""
Cost calculation for room stays and ambulance rides.

Pure functions: the same inputs always give the same amount, so callers
simply recompute and overwrite ``total_cost`` whenever an input changes.
"""
from __future__ import annotations

import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal('0.01')


def _dec(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def stay_days(checkin: datetime.date, checkout: Optional[datetime.date] = None) -> int:
    """Billable nights; never less than one."""
    if checkout is None:
        return 1
    return max(1, (checkout - checkin).days)


def room_cost(daily_rate: Number, checkin: datetime.date, checkout: Optional[datetime.date] = None) -> Decimal:
    return quantize(_dec(daily_rate) * stay_days(checkin, checkout))


def ambulance_cost(base_fare: Number, per_km_fare: Number, distance_km: Optional[Number] = None) -> Decimal:
    distance = _dec(distance_km) if distance_km is not None else Decimal('0')
    return quantize(_dec(base_fare) + _dec(per_km_fare) * distance)
