"""Agents: the oracle-driven explorer, the breadth-first crawler and the oracle gateway."""

from .base import DEFAULT_GOAL, BaseSessionAgent, ExplorationRun
from .explorer_agent import ExplorerAgent
from .oracle import DecisionOracle, parse_decision
from .site_crawler import SiteCrawler

__all__ = [
    "DEFAULT_GOAL",
    "BaseSessionAgent",
    "DecisionOracle",
    "ExplorationRun",
    "ExplorerAgent",
    "SiteCrawler",
    "parse_decision",
]
