"""Turn a stored prediction into a concrete, liquid option contract with narrated strategy."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger

from rally_radar.clients.base import (
    APIClientError,
    OptionContract,
    OptionsProvider,
    QuoteProvider,
    ReasoningService,
    StockQuote,
)
from rally_radar.clients.reasoning_client import extract_json
from rally_radar.errors import FailureKind
from rally_radar.forecasting.base import PredictionRecord, RallyPrediction
from rally_radar.forecasting.prompts import NARRATION_SCHEMA, NARRATION_SYSTEM_PROMPT, build_narration_prompt
from rally_radar.options.base import OptionRecommendation, StrategyNarration
from rally_radar.options.pricing import (
    CONTRACT_MULTIPLIER,
    RecommenderConfig,
    alternatives_for,
    break_even,
    choose_expiration,
    liquid_contracts,
    premium,
    probability_of_profit,
    risk_level,
    select_strike,
    target_days_to_expiration,
)


def fallback_narration(prediction: RallyPrediction) -> StrategyNarration:
    """Generic guidance used when no live contract could be priced."""

    option_type = prediction.opportunity_type.upper()
    return StrategyNarration(
        options_strategy=(
            f"{option_type} options on {', '.join(prediction.recommended_stocks) or 'the sector leaders'}. "
            "Note: Live market data unavailable - verify all details with your broker before trading."
        ),
        suggested_strike=(
            "Check current stock price and select strikes based on your risk tolerance: "
            "ATM for high confidence, OTM for lower confidence"
        ),
        suggested_expiration=(
            f"{prediction.timeframe} out. Suggest adding 2-week buffer to avoid theta decay. "
            "Use monthly expirations for better liquidity."
        ),
        entry_strategy=(
            f"{prediction.entry_timing}. Verify current option premiums and select liquid contracts "
            "(open interest >100)."
        ),
        exit_strategy=f"{prediction.exit_strategy}. Set stop loss if underlying moves against you by 10-15%.",
        risk_assessment=(
            f"Confidence: {prediction.confidence}%. Risk level: {risk_level(prediction.confidence)}. "
            "Always verify live data before trading."
        ),
    )


def contract_narration(facts: Dict[str, Any], prediction: RallyPrediction) -> StrategyNarration:
    """Templated text built only from computed facts; used as defaults for the reasoning service."""

    return StrategyNarration(
        options_strategy=(
            f"{str(facts['option_type']).upper()} ${facts['strike']} exp {facts['expiration']} on "
            f"{facts['ticker']}. {facts['selection_reasoning']}."
        ),
        suggested_strike=f"${facts['strike']}",
        suggested_expiration=f"{facts['expiration']} ({facts['days_to_expiration']} days out)",
        entry_strategy=prediction.entry_timing or f"Enter near ${facts['current_price']:.2f}",
        exit_strategy=prediction.exit_strategy or "Exit at break-even or better before expiration",
        risk_assessment=(
            f"Max loss per contract: ${facts['cost']:.0f}. Probability of profit: "
            f"~{facts['probability_of_profit']}%. Break-even at ${facts['break_even']:.2f} "
            f"({facts['break_even_move_pct']:.1f}% move). Risk level: {risk_level(prediction.confidence)}."
        ),
    )


class OptionsRecommender:
    """Select expiration and strike from live data, price it, then ask for narration."""

    def __init__(
        self,
        quote_provider: QuoteProvider,
        options_provider: OptionsProvider,
        reasoning: Optional[ReasoningService] = None,
        config: Optional[RecommenderConfig] = None,
    ) -> None:
        self.quote_provider = quote_provider
        self.options_provider = options_provider
        self.reasoning = reasoning
        self.config = config or RecommenderConfig()

    def _fallback(self, prediction: RallyPrediction, ticker: Optional[str], reason: FailureKind) -> OptionRecommendation:
        logger.warning("Falling back to templated options recommendation", ticker=ticker, reason=reason.value)
        return OptionRecommendation(
            ticker=ticker,
            option_type=prediction.opportunity_type,
            narration=fallback_narration(prediction),
            live_data=False,
            fallback_reason=reason,
        )

    def recommend(self, record: PredictionRecord) -> OptionRecommendation:
        prediction = record.prediction
        if not prediction.recommended_stocks:
            return self._fallback(prediction, None, FailureKind.INSUFFICIENT_DATA)
        ticker = prediction.recommended_stocks[0]
        option_type = "call" if prediction.opportunity_type == "call" else "put"

        try:
            quote = self.quote_provider.get_quote(ticker)
            if quote is None or not quote.price:
                return self._fallback(prediction, ticker, FailureKind.UPSTREAM_FAILURE)

            target_days = target_days_to_expiration(prediction.timeframe)
            expiration = choose_expiration(self.options_provider.get_expirations(ticker), target_days)
            if expiration is None:
                return self._fallback(prediction, ticker, FailureKind.INSUFFICIENT_DATA)

            chain = self.options_provider.get_chain(ticker, expiration.date, with_greeks=True)
        except APIClientError as exc:
            logger.warning("Market data lookup failed", ticker=ticker, error=str(exc))
            return self._fallback(prediction, ticker, FailureKind.UPSTREAM_FAILURE)

        liquid = liquid_contracts(chain, option_type, self.config.min_open_interest)
        selected, selection_reasoning = select_strike(
            liquid, quote.price, option_type, prediction.confidence, self.config
        )
        if selected is None:
            logger.info("No liquid contracts", ticker=ticker, expiration=expiration.date)
            return self._fallback(prediction, ticker, FailureKind.INSUFFICIENT_DATA)

        alternatives = alternatives_for(liquid, selected, quote.price, self.config.alternatives)
        price = premium(selected)
        recommendation = OptionRecommendation(
            ticker=ticker,
            option_type=option_type,
            narration=fallback_narration(prediction),
            contract=selected,
            premium=price,
            cost=price * CONTRACT_MULTIPLIER,
            break_even=break_even(selected),
            probability_of_profit=probability_of_profit(selected, quote.price),
            current_price=quote.price,
            days_to_expiration=expiration.days_to_expiration,
            alternative_contracts=alternatives,
            selection_reasoning=selection_reasoning,
            live_data=True,
        )
        facts = self.contract_facts(recommendation, quote, prediction)
        defaults = contract_narration(facts, prediction)
        recommendation.narration = defaults
        logger.info(
            "Selected option contract",
            ticker=ticker,
            symbol=selected.symbol,
            strike=selected.strike,
            expiration=selected.expiration,
        )

        if self.reasoning is None:
            return recommendation
        try:
            raw = self.reasoning.complete(NARRATION_SYSTEM_PROMPT, build_narration_prompt(facts), NARRATION_SCHEMA)
            payload = extract_json(raw)
            if not isinstance(payload, dict):
                raise ValueError("narration response is not an object")
        except Exception as exc:
            logger.warning("Narration failed; keeping computed contract with templated text", error=str(exc))
            recommendation.fallback_reason = FailureKind.UPSTREAM_FAILURE
            return recommendation
        recommendation.narration = StrategyNarration.from_payload(payload, defaults)
        return recommendation

    @staticmethod
    def contract_facts(
        recommendation: OptionRecommendation, quote: StockQuote, prediction: RallyPrediction
    ) -> Dict[str, Any]:
        contract: OptionContract = recommendation.contract
        alternatives: List[Dict[str, Any]] = [
            {"strike": alt.strike, "premium": premium(alt), "open_interest": alt.open_interest}
            for alt in recommendation.alternative_contracts
        ]
        return {
            "ticker": recommendation.ticker,
            "current_price": quote.price,
            "change_percent": quote.change_percent,
            "option_type": contract.option_type,
            "strike": contract.strike,
            "expiration": contract.expiration,
            "days_to_expiration": recommendation.days_to_expiration,
            "premium": recommendation.premium,
            "cost": recommendation.cost,
            "break_even": recommendation.break_even,
            "break_even_move_pct": (recommendation.break_even - quote.price) / quote.price * 100,
            "probability_of_profit": recommendation.probability_of_profit,
            "open_interest": contract.open_interest,
            "volume": contract.volume,
            "implied_volatility": contract.implied_volatility,
            "delta": contract.delta,
            "theta": contract.theta,
            "vega": contract.vega,
            "gamma": contract.gamma,
            "sector": prediction.sector,
            "direction": prediction.direction,
            "confidence": prediction.confidence,
            "timeframe": prediction.timeframe,
            "early_signals": list(prediction.early_signals),
            "reasoning": prediction.reasoning,
            "entry_timing": prediction.entry_timing,
            "selection_reasoning": recommendation.selection_reasoning,
            "alternatives": alternatives,
        }
