"""Result types for option contract recommendations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rally_radar.clients.base import OptionContract
from rally_radar.errors import FailureKind


@dataclass
class StrategyNarration:
    """Explanatory text around a recommendation; never the source of any number."""

    options_strategy: str
    suggested_strike: str
    suggested_expiration: str
    entry_strategy: str
    exit_strategy: str
    risk_assessment: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], defaults: "StrategyNarration") -> "StrategyNarration":
        def pick(key: str, fallback: str) -> str:
            value = payload.get(key)
            return str(value).strip() if value and str(value).strip() else fallback

        return cls(
            options_strategy=pick("optionsStrategy", defaults.options_strategy),
            suggested_strike=pick("suggestedStrike", defaults.suggested_strike),
            suggested_expiration=pick("suggestedExpiration", defaults.suggested_expiration),
            entry_strategy=pick("entryStrategy", defaults.entry_strategy),
            exit_strategy=pick("exitStrategy", defaults.exit_strategy),
            risk_assessment=pick("riskAssessment", defaults.risk_assessment),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "optionsStrategy": self.options_strategy,
            "suggestedStrike": self.suggested_strike,
            "suggestedExpiration": self.suggested_expiration,
            "entryStrategy": self.entry_strategy,
            "exitStrategy": self.exit_strategy,
            "riskAssessment": self.risk_assessment,
        }


@dataclass
class OptionRecommendation:
    ticker: Optional[str]
    option_type: str
    narration: StrategyNarration
    contract: Optional[OptionContract] = None
    premium: Optional[float] = None
    cost: Optional[float] = None
    break_even: Optional[float] = None
    probability_of_profit: Optional[int] = None
    current_price: Optional[float] = None
    days_to_expiration: Optional[int] = None
    alternative_contracts: List[OptionContract] = field(default_factory=list)
    selection_reasoning: str = ""
    live_data: bool = False
    fallback_reason: Optional[FailureKind] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "ticker": self.ticker,
            "optionType": self.option_type,
            "liveData": self.live_data,
            **self.narration.to_dict(),
        }
        if self.fallback_reason is not None:
            payload["fallbackReason"] = self.fallback_reason.value
        if self.contract is None:
            return payload
        contract = self.contract
        payload.update(
            {
                "contract": {
                    "symbol": contract.symbol,
                    "strike": contract.strike,
                    "expiration": contract.expiration,
                    "openInterest": contract.open_interest,
                    "volume": contract.volume,
                    "impliedVolatility": contract.implied_volatility,
                    "greeks": {
                        "delta": contract.delta,
                        "gamma": contract.gamma,
                        "theta": contract.theta,
                        "vega": contract.vega,
                        "rho": contract.rho,
                    },
                },
                "currentPrice": self.current_price,
                "premium": round(self.premium, 2) if self.premium is not None else None,
                "cost": round(self.cost, 2) if self.cost is not None else None,
                "breakEven": round(self.break_even, 2) if self.break_even is not None else None,
                "probabilityOfProfit": self.probability_of_profit,
                "daysToExpiration": self.days_to_expiration,
                "selectionReasoning": self.selection_reasoning,
                "alternatives": [
                    {"symbol": alt.symbol, "strike": alt.strike, "openInterest": alt.open_interest}
                    for alt in self.alternative_contracts
                ],
            }
        )
        return payload
