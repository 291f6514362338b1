# commission_api/services/currency.py
"""
USD -> payroll currency (PKR) conversion.

There is no rate history: the rate in effect *now* is used for every
computation, including recomputation of past months.
"""
from __future__ import annotations

import logging
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from commission_api.services.settings import get_or_create_settings

log = logging.getLogger(__name__)

FALLBACK_USD_TO_PKR_RATE = 271.2


def fallback_rate() -> float:
    try:
        return float(current_app.config.get("DEFAULT_USD_TO_PKR_RATE", FALLBACK_USD_TO_PKR_RATE))
    except RuntimeError:
        return FALLBACK_USD_TO_PKR_RATE


def get_exchange_rate() -> float:
    try:
        s = get_or_create_settings()
    except SQLAlchemyError as e:
        log.warning("settings unavailable, using fallback rate: %s", e)
        return fallback_rate()
    return s.usd_to_pkr_rate or fallback_rate()


def to_payroll_currency(usd_amount: float, rate: Optional[float] = None) -> float:
    if rate is None:
        rate = get_exchange_rate()
    return usd_amount * rate
