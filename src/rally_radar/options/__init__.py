"""Option contract selection, pricing and recommendation."""

from rally_radar.options.base import OptionRecommendation, StrategyNarration
from rally_radar.options.pricing import RecommenderConfig
from rally_radar.options.recommender import OptionsRecommender

__all__ = ["OptionRecommendation", "OptionsRecommender", "RecommenderConfig", "StrategyNarration"]
