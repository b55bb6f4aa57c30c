"""Autonomous exploratory website tester."""
from .agents import DecisionOracle, ExplorationRun, ExplorerAgent, SiteCrawler
from .core.browser import BrowserSession, CDPClient, Locator
from .core.config import AppConfig, BrowserConfig, ExplorationConfig, OpenAIConfig, OutputConfig
from .core.exceptions import ExplorerError, FatalInitError
from .core.llm import LLMClient
from .models import PageSnapshot, SessionReport
from .services import Frontier, SessionMemory

__all__ = [
    "AppConfig",
    "BrowserConfig",
    "BrowserSession",
    "CDPClient",
    "DecisionOracle",
    "ExplorationConfig",
    "ExplorationRun",
    "ExplorerAgent",
    "ExplorerError",
    "FatalInitError",
    "Frontier",
    "LLMClient",
    "Locator",
    "OpenAIConfig",
    "OutputConfig",
    "PageSnapshot",
    "SessionMemory",
    "SessionReport",
    "SiteCrawler",
]
