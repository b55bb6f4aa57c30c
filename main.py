#!/usr/bin/env python3
"""Main entry point for the site explorer.

Two modes:
    explore  the oracle decides what to click, fill and visit (default)
    crawl    breadth-first visit of same-domain links with a DOM audit per page

Structured logs go to <output-dir>/logs/<session_id>.jsonl; spans are
exported over OTLP when OTEL_ENDPOINT is set.
"""
import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path

# Load .env file before any other imports that use os.environ
from dotenv import load_dotenv

load_dotenv()

from site_explorer.agents import DEFAULT_GOAL, DecisionOracle, ExplorationRun, ExplorerAgent, SiteCrawler
from site_explorer.core.browser import BrowserSession
from site_explorer.core.config import AppConfig, OutputConfig
from site_explorer.core.exceptions import ConfigError, FatalInitError
from site_explorer.core.llm import LLMClient
from site_explorer.observability.config import ObservabilityConfig, initialize_observability, shutdown
from site_explorer.observability.context import ObservabilityContext, get_or_create_context, set_context
from site_explorer.observability.emitters import emit_error, emit_info, emit_warning
from site_explorer.observability.handlers import JSONLinesHandler
from site_explorer.services.report_builder import ReportBuilder


@dataclass
class CliArgs:
    """Parsed command-line arguments."""
    url: str
    mode: str
    goal: str
    output_dir: Path | None
    max_pages: int | None
    max_steps: int | None
    delay: float | None
    log_level: str
    keep_open: bool


def parse_arguments(argv: list[str] | None = None) -> CliArgs:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Explore a website with an AI-driven test agent"
    )
    parser.add_argument("url", help="Target URL to test")
    parser.add_argument(
        "--mode",
        default="explore",
        choices=["explore", "crawl"],
        help="explore: oracle-driven interaction; crawl: breadth-first audit"
    )
    parser.add_argument("--goal", "-g", default=DEFAULT_GOAL, help="Exploration goal (explore mode)")
    parser.add_argument("--output-dir", "-o", type=Path, help="Base directory for reports")
    parser.add_argument("--max-pages", type=int, help="Maximum number of pages to visit")
    parser.add_argument("--max-steps", type=int, help="Maximum number of oracle steps (explore mode)")
    parser.add_argument("--delay", type=float, help="Delay between steps or pages, in seconds")
    parser.add_argument(
        "--log-level", "-l",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--keep-open",
        action="store_true",
        help="Leave the browser tab open until Enter is pressed (explore mode)"
    )
    args = parser.parse_args(argv)

    return CliArgs(
        url=args.url,
        mode=args.mode,
        goal=args.goal,
        output_dir=args.output_dir,
        max_pages=args.max_pages,
        max_steps=args.max_steps,
        delay=args.delay,
        log_level=args.log_level,
        keep_open=args.keep_open,
    )


def setup_logging(level: str) -> logging.Logger:
    """Configure logging and return the logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )
    return logging.getLogger(__name__)


def setup_observability(output: OutputConfig) -> ObservabilityContext:
    """Initialize the observability system and return the root context."""
    handler = JSONLinesHandler(output.base_dir / "logs")
    initialize_observability(handler=handler, config=ObservabilityConfig.from_env())

    ctx = get_or_create_context("application")
    set_context(ctx)
    return ctx


def apply_overrides(app_config: AppConfig, args: CliArgs) -> AppConfig:
    """Layer command-line flags over the environment configuration."""
    overrides: dict[str, object] = {}
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.max_steps is not None:
        overrides["max_steps"] = args.max_steps
    if args.delay is not None:
        overrides["step_delay"] = args.delay
    if overrides:
        app_config.exploration = replace(app_config.exploration, **overrides)
    if args.output_dir is not None:
        app_config.output = OutputConfig(base_dir=args.output_dir)
    return app_config


async def run_session(args: CliArgs, app_config: AppConfig, logger: logging.Logger) -> ExplorationRun:
    """Run one explore or crawl session."""
    llm = LLMClient(app_config.openai, component_name="oracle")
    oracle = DecisionOracle(llm, app_config.exploration)

    def session_factory() -> BrowserSession:
        return BrowserSession(app_config.browser)

    if args.mode == "crawl":
        crawler = SiteCrawler(
            app_config.exploration,
            app_config.output,
            session_factory=session_factory,
            report_builder=ReportBuilder(recommender=oracle),
        )
        logger.info(f"Crawling: {args.url}")
        return await crawler.crawl(args.url)

    agent = ExplorerAgent(oracle, app_config.exploration, app_config.output, session_factory=session_factory)
    logger.info(f"Exploring: {args.url} (goal: {args.goal})")
    run = await agent.explore(args.url, goal=args.goal, keep_open=args.keep_open)

    if run.session is not None:
        print("Browser left open for manual follow-up. Press Enter to close it.")
        await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)
        await run.close()
    return run


def _print_summary(run: ExplorationRun) -> None:
    report = run.report
    print(f"\nState:         {report.state.value}")
    print(f"Pages visited: {len(report.visited_pages)}")
    print(f"Actions:       {report.total_actions} ({report.failed_actions} failed)")
    print(f"Success rate:  {report.success_rate_display}")
    print(f"Findings:      {len(report.findings)}")
    for kind, path in run.artifacts.items():
        print(f"{kind + ':':<15}{path}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    logger = setup_logging(args.log_level)

    try:
        app_config = apply_overrides(AppConfig.from_env(), args)
    except ConfigError as e:
        logger.error(e.message)
        return 1

    ctx = setup_observability(app_config.output)
    emit_info(
        event="application.start",
        ctx=ctx,
        data={"target_url": args.url, "mode": args.mode, "log_level": args.log_level},
        tags=["application", "startup"]
    )

    try:
        logger.info(f"Using model: {app_config.openai.model}")
        run = asyncio.run(run_session(args, app_config, logger))
        _print_summary(run)
        emit_info(
            event="application.complete",
            ctx=ctx,
            data={"state": run.state.value, "report": str(run.artifacts.get("json"))},
            tags=["application", "success"]
        )
        return 0

    except FatalInitError as e:
        logger.error(e.message)
        emit_error(
            event="application.failed",
            ctx=ctx,
            data={"error": e.message, "url": e.url},
            tags=["application", "failure"]
        )
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        emit_warning(
            event="application.interrupted",
            ctx=ctx,
            data={"message": "Interrupted by user"},
            tags=["application", "interrupted"]
        )
        return 130
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        emit_error(
            event="application.error",
            ctx=ctx,
            data={
                "error_type": type(e).__name__,
                "error_message": str(e)
            },
            tags=["application", "error", "unhandled"]
        )
        return 1
    finally:
        shutdown()


if __name__ == "__main__":
    sys.exit(main())
