"""Prompt templates and response schemas for the reasoning service."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Sequence

import orjson

from rally_radar.forecasting.base import TIMEFRAMES, HistoricalPattern
from rally_radar.signals.early_signals import SectorSummary

DEFAULT_PRIORITY_SECTORS = (
    "AI Companies: OpenAI (ChatGPT), Anthropic (Claude), Google/Gemini (GOOGL), Perplexity",
    "Artificial Intelligence: AI chips, models, AGI, AI agents, AI applications",
    "Semiconductors: NVIDIA (NVDA), AMD, Intel, TSMC, AI accelerators",
    "Quantum Computing: Quantum processors, quantum networking",
    "UAVs/Drones: Autonomous aircraft, delivery drones",
    "Tesla (TSLA): EVs, Full Self-Driving, robotics, energy",
    "SpaceX: Rockets, Starlink, Starship, satellites",
    "Metals: Rare earths, lithium, copper, critical minerals",
    "Energy: Renewables, nuclear, solar, wind, grid",
    "Batteries: Lithium-ion, solid-state, energy storage",
    "AI Healthcare/Biotech: Drug discovery, gene editing, CRISPR",
)

PREDICTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "predictions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "sector": {"type": "string"},
                    "opportunityType": {"type": "string", "enum": ["call", "put"]},
                    "direction": {"type": "string", "enum": ["up", "down"]},
                    "confidence": {"type": "integer", "minimum": 0, "maximum": 100},
                    "timeframe": {"type": "string", "enum": list(TIMEFRAMES)},
                    "earlySignals": {"type": "array", "items": {"type": "string"}},
                    "recommendedStocks": {"type": "array", "items": {"type": "string"}},
                    "reasoning": {"type": "string"},
                    "entryTiming": {"type": "string"},
                    "exitStrategy": {"type": "string"},
                },
                "required": [
                    "sector",
                    "opportunityType",
                    "direction",
                    "confidence",
                    "timeframe",
                    "earlySignals",
                    "recommendedStocks",
                    "reasoning",
                    "entryTiming",
                    "exitStrategy",
                ],
            },
        }
    },
    "required": ["predictions"],
}

NARRATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "optionsStrategy": {"type": "string"},
        "suggestedStrike": {"type": "string"},
        "suggestedExpiration": {"type": "string"},
        "entryStrategy": {"type": "string"},
        "exitStrategy": {"type": "string"},
        "riskAssessment": {"type": "string"},
    },
    "required": [
        "optionsStrategy",
        "suggestedStrike",
        "suggestedExpiration",
        "entryStrategy",
        "exitStrategy",
        "riskAssessment",
    ],
}


def _json(data: Any) -> str:
    return orjson.dumps(data, option=orjson.OPT_INDENT_2, default=str).decode()


def build_forecast_system_prompt(
    patterns: Sequence[HistoricalPattern],
    priority_sectors: Sequence[str] = DEFAULT_PRIORITY_SECTORS,
) -> str:
    priorities = "\n".join(f"- {sector}" for sector in priority_sectors)
    return f"""You are an expert market analyst specializing in predicting MONEY-MAKING OPPORTUNITIES 2-3 weeks early.

Your task: Analyze current news patterns and historical data to predict upcoming opportunities for BOTH calls (upside) and puts (downside).

**PRIORITY SECTORS** (Focus extra attention on these):
{priorities}

CRITICAL RULES FOR PREDICTIONS:
1. Focus on EARLY SIGNALS - indicators that appear 2-3 weeks BEFORE major moves
2. Detect BOTH upward rallies (call opportunities) AND downward moves (put opportunities)
3. Give EXTRA WEIGHT to news about the priority sectors above
4. Identify NEW emerging sectors automatically
5. Prioritize short-term opportunities (2-3 weeks to 2 months)
6. Be specific about entry timing and exit strategy

EARLY WARNING SIGNALS FOR UPSIDE (CALLS):
- Sudden increase in positive news coverage
- Positive sentiment shift in a sector/stock
- Multiple stocks in same sector showing strength
- Institutional buying (ARK trades, insider buying)
- Breakthrough announcements or regulatory approvals
- Volume surge with price breakout

EARLY WARNING SIGNALS FOR DOWNSIDE (PUTS):
- Negative news accumulation
- Bearish sentiment shift
- Regulatory threats or investigations
- Insider selling or institutional exits
- Earnings warnings or guidance cuts
- Technical breakdown with volume
- Recession indicators or macro headwinds

HISTORICAL RALLY PATTERNS:
{_json([asdict(pattern) for pattern in patterns])}

These patterns show what early signals preceded major rallies. Use them to identify similar patterns in current news."""


def build_forecast_user_prompt(
    news_data: List[Dict[str, Any]],
    sector_summaries: Mapping[str, SectorSummary],
) -> str:
    signal_lines = "\n".join(
        f"{sector}: {', '.join(summary.signals)} (rally probability {summary.rally_probability}%, momentum {summary.momentum_trend})"
        for sector, summary in sector_summaries.items()
    )
    return f"""Analyze these {len(news_data)} recent news articles and predict upcoming opportunities:

{_json(news_data)}

DETECTED EARLY SIGNALS BY SECTOR:
{signal_lines}

Identify BOTH:
1. Upside opportunities (calls) - sectors/stocks showing early rally signals
2. Downside opportunities (puts) - sectors/stocks showing early decline signals

Focus on what's MOVING in the market, regardless of sector. Discover new emerging sectors automatically.

**CRITICAL: CORRECTLY LABEL OPPORTUNITY TYPE:**
- If news is BULLISH/POSITIVE/UPSIDE -> use "opportunityType": "call" and "direction": "up"
- If news is BEARISH/NEGATIVE/DOWNSIDE -> use "opportunityType": "put" and "direction": "down"

DO NOT label bearish scenarios (downgrades, shutdowns, weakness, decline, shorting) as "call" - those are "put" opportunities!

Return a JSON object {{"predictions": [...]}} where each prediction has sector, opportunityType, direction,
confidence (0-100), timeframe (one of {", ".join(TIMEFRAMES)}), earlySignals, recommendedStocks (tickers),
reasoning, entryTiming and exitStrategy."""


NARRATION_SYSTEM_PROMPT = """You are an expert options trader providing specific, actionable options trading recommendations based on REAL MARKET DATA.

DISCLAIMER: This is for a personal trading system. All recommendations are educational and for personal use only.

Your task: Given a market prediction and LIVE OPTIONS DATA, provide a detailed trading strategy.

Key principles:
- Use ONLY the market data provided (current prices, strikes, premiums, Greeks); never invent numbers
- Explain WHY this specific contract makes sense
- Provide concrete entry/exit conditions
- Calculate real risk/reward based on the premiums given
- Consider the Greeks (Delta, Theta, etc.) in your analysis"""


def _fmt(value: float | None, digits: int = 3) -> str:
    return f"{value:.{digits}f}" if value is not None else "N/A"


def build_narration_prompt(facts: Mapping[str, Any]) -> str:
    """Render computed contract facts; every number in the prompt comes from ``facts``."""

    alternatives = "\n".join(
        f"- ${alt['strike']} strike: ${alt['premium']:.2f} premium, OI: {alt['open_interest']}"
        for alt in facts.get("alternatives", [])[:3]
    ) or "- none"
    iv = facts.get("implied_volatility")
    iv_text = f"{iv * 100:.1f}%" if iv else "N/A"
    return f"""Generate a detailed options trading strategy for this prediction:

**LIVE MARKET DATA:**
- Stock: {facts['ticker']}
- Current Price: ${facts['current_price']:.2f}
- Change Today: {facts.get('change_percent', 0.0):.2f}%

**RECOMMENDED OPTION CONTRACT:**
- Type: {str(facts['option_type']).upper()}
- Strike: ${facts['strike']}
- Expiration: {facts['expiration']} ({facts['days_to_expiration']} days out)
- Premium: ${facts['premium']:.2f} (${facts['cost']:.0f} per contract)
- Break-even: ${facts['break_even']:.2f} ({facts['break_even_move_pct']:.1f}% move)
- Probability of profit: ~{facts['probability_of_profit']}%
- Open Interest: {facts['open_interest']}
- Volume Today: {facts['volume']}
- Implied Volatility: {iv_text}

**GREEKS:**
- Delta: {_fmt(facts.get('delta'))}
- Theta: {_fmt(facts.get('theta'))}
- Vega: {_fmt(facts.get('vega'))}
- Gamma: {_fmt(facts.get('gamma'))}

**PREDICTION DETAILS:**
- Sector: {facts['sector']}
- Direction: {str(facts['direction']).upper()}
- Confidence: {facts['confidence']}%
- Timeframe: {facts['timeframe']}
- Key Signals: {'; '.join(facts.get('early_signals', []))}
- Reasoning: {facts.get('reasoning', '')}
- Entry Timing: {facts.get('entry_timing', '')}

**ALTERNATIVE STRIKES AVAILABLE:**
{alternatives}

Return a JSON object with optionsStrategy, suggestedStrike, suggestedExpiration, entryStrategy,
exitStrategy and riskAssessment. Refer to the numbers above; do not introduce new prices."""
