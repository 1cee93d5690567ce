"""Pure contract-selection and pricing rules used by the options recommender."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from rally_radar.clients.base import OptionContract, OptionExpiration
from rally_radar.utils.numbers import round_half_up

CONTRACT_MULTIPLIER = 100

TARGET_DAYS = (
    ("2-3 weeks", 21),
    ("1-2 months", 45),
    ("3-6 months", 90),
)
DEFAULT_TARGET_DAYS = 30


@dataclass
class RecommenderConfig:
    min_open_interest: int = 50
    high_confidence: int = 75
    medium_confidence: int = 50
    medium_offset: float = 0.05
    low_offset: float = 0.10
    alternatives: int = 5


def target_days_to_expiration(timeframe: str) -> int:
    for label, days in TARGET_DAYS:
        if label in (timeframe or ""):
            return days
    return DEFAULT_TARGET_DAYS


def choose_expiration(expirations: Sequence[OptionExpiration], target_days: int) -> Optional[OptionExpiration]:
    """Expiration closest to ``target_days``; the earliest listed wins a tie."""

    best: Optional[OptionExpiration] = None
    for expiration in expirations:
        if best is None or abs(expiration.days_to_expiration - target_days) < abs(best.days_to_expiration - target_days):
            best = expiration
    return best


def liquid_contracts(
    chain: Sequence[OptionContract], option_type: str, min_open_interest: int = 50
) -> List[OptionContract]:
    matching = [c for c in chain if c.option_type == option_type and c.open_interest >= min_open_interest]
    return sorted(matching, key=lambda c: c.open_interest, reverse=True)


def nearest_to(contracts: Sequence[OptionContract], target: float, count: int) -> List[OptionContract]:
    # sorted() is stable, so equally distant strikes keep the open-interest order.
    return sorted(contracts, key=lambda c: abs(c.strike - target))[:count]


def select_strike(
    liquid: Sequence[OptionContract],
    current_price: float,
    option_type: str,
    confidence: int,
    config: RecommenderConfig | None = None,
) -> Tuple[Optional[OptionContract], str]:
    """Pick a contract by confidence band and return it with a one-line rationale."""

    config = config or RecommenderConfig()
    if not liquid:
        return None, ""
    is_call = option_type == "call"
    if confidence >= config.high_confidence:
        target = current_price
        reasoning = f"High confidence ({confidence}%) -> ATM/ITM option for higher probability of profit"
    elif confidence >= config.medium_confidence:
        target = current_price * (1 + config.medium_offset if is_call else 1 - config.medium_offset)
        reasoning = f"Medium confidence ({confidence}%) -> OTM option for better risk/reward"
    else:
        target = current_price * (1 + config.low_offset if is_call else 1 - config.low_offset)
        reasoning = f"Lower confidence ({confidence}%) -> Far OTM option or consider spreads to limit risk"
    return nearest_to(liquid, target, 1)[0], reasoning


def alternatives_for(
    liquid: Sequence[OptionContract],
    selected: OptionContract,
    current_price: float,
    count: int = 5,
) -> List[OptionContract]:
    return [c for c in nearest_to(liquid, current_price, count) if c.symbol != selected.symbol]


def premium(contract: OptionContract) -> float:
    mid = (contract.bid + contract.ask) / 2
    return mid or contract.last


def break_even(contract: OptionContract) -> float:
    if contract.option_type == "call":
        return contract.strike + premium(contract)
    return contract.strike - premium(contract)


def probability_of_profit(contract: OptionContract, current_price: float) -> int:
    """Delta as a probability when available, otherwise a moneyness lookup."""

    if contract.delta:
        return round_half_up(abs(contract.delta) * 100)

    moneyness = contract.strike / current_price
    if contract.option_type == "call":
        if moneyness < 0.95:
            return 70
        if moneyness < 1.0:
            return 60
        if moneyness < 1.05:
            return 50
        if moneyness < 1.1:
            return 40
        return 30
    if moneyness > 1.05:
        return 70
    if moneyness > 1.0:
        return 60
    if moneyness > 0.95:
        return 50
    if moneyness > 0.9:
        return 40
    return 30


def risk_level(confidence: int) -> str:
    if confidence > 75:
        return "Low-Moderate"
    if confidence > 50:
        return "Moderate"
    return "Moderate-High"
