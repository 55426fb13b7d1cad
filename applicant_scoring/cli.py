"""
Command-line interface for applicant-scoring.

Provides commands to initialize the score table, inspect and generate
candidate scores, run the backfill sweep and check dependency health.

Usage:
    applicant-scoring init-db                 # Create candidate_ai_scores
    applicant-scoring score show 42           # Latest score for a candidate
    applicant-scoring score history 42        # Every stored version
    applicant-scoring score generate 42       # Generate or fetch
    applicant-scoring score generate 42 --force
    applicant-scoring backfill --once         # One sweep, then drain
    applicant-scoring backfill                # Run until SIGINT/SIGTERM
    applicant-scoring health                  # Check service health
"""

import asyncio
import json
import signal
import sys

import click

from applicant_scoring.observability.logging import bind_context, setup_logging
from applicant_scoring.observability.metrics import get_metrics

# Exit codes for `score generate`
EXIT_SCORING_FAILED = 1
EXIT_NOT_CONFIGURED = 2


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """Applicant Scoring - AI evaluations for ATS candidates."""
    setup_logging(level="DEBUG" if debug else None)
    bind_context(command=ctx.invoked_subcommand)


@main.command("init-db")
def init_db() -> None:
    """Create the candidate_ai_scores table and index."""
    from applicant_scoring.scoring.repository import ScoreRepository
    from applicant_scoring.storage.database import Database

    async def run():
        db = Database()
        await db.connect()
        try:
            await ScoreRepository(db).create_tables()
            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.group()
def score() -> None:
    """Inspect and generate candidate scores."""


@score.command("show")
@click.argument("candidate_id", type=int)
def score_show(candidate_id: int) -> None:
    """Print the latest score for CANDIDATE_ID."""
    from applicant_scoring.services.scoring_runtime import ScoringRuntime

    async def run():
        runtime = ScoringRuntime()
        await runtime.start(background=False)
        try:
            latest = await runtime.get_latest_score(candidate_id)
        finally:
            await runtime.stop()

        if latest is None:
            click.echo(f"No score for candidate {candidate_id}")
        else:
            click.echo(latest.model_dump_json(indent=2))

    asyncio.run(run())


@score.command("history")
@click.argument("candidate_id", type=int)
@click.option("--limit", default=20, show_default=True, help="Max versions to list")
def score_history(candidate_id: int, limit: int) -> None:
    """List stored score versions for CANDIDATE_ID, newest first."""
    from applicant_scoring.services.scoring_runtime import ScoringRuntime

    async def run():
        runtime = ScoringRuntime()
        await runtime.start(background=False)
        try:
            scores = await runtime.scores.list_history(candidate_id, limit=limit)
        finally:
            await runtime.stop()

        if not scores:
            click.echo(f"No score for candidate {candidate_id}")
            return

        click.echo(f"\nScore history for candidate {candidate_id}:")
        click.echo("-" * 60)
        for s in scores:
            click.echo(
                f"  {s.created_at:%Y-%m-%d %H:%M:%S}  {s.version:<28} "
                f"{s.model:<14} overall={_fmt_score(s.overall_score)}"
            )
        click.echo("-" * 60)

    asyncio.run(run())


@score.command("generate")
@click.argument("candidate_id", type=int)
@click.option("--force", is_flag=True, help="Regenerate even if a score exists")
def score_generate(candidate_id: int, force: bool) -> None:
    """Generate a score for CANDIDATE_ID, or return the stored one."""
    from applicant_scoring.scoring.errors import ConfigurationError, ScoringError
    from applicant_scoring.services.scoring_runtime import ScoringRuntime

    async def run() -> int:
        runtime = ScoringRuntime()
        await runtime.start(background=False)
        try:
            result = await runtime.generate_or_fetch(candidate_id, force=force)
        except ConfigurationError as e:
            click.echo(click.style(json.dumps(e.to_dict()), fg="red"), err=True)
            return EXIT_NOT_CONFIGURED
        except ScoringError as e:
            click.echo(click.style(json.dumps(e.to_dict()), fg="red"), err=True)
            return EXIT_SCORING_FAILED
        finally:
            await runtime.stop()

        click.echo(f"Status: {result.status.value}")
        if result.already_existed:
            click.echo("Stored score returned; pass --force to rescore")
        click.echo(result.score.model_dump_json(indent=2))
        return 0

    exit_code = asyncio.run(run())
    if exit_code:
        sys.exit(exit_code)


@main.command()
@click.option("--once", is_flag=True, help="Run a single sweep and wait for it to finish")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def backfill(once: bool, metrics: bool) -> None:
    """Score candidates that have documents but no stored score."""
    from applicant_scoring.services.scoring_runtime import ScoringRuntime

    async def run():
        runtime = ScoringRuntime()

        if once:
            await runtime.start(background=False)
            await runtime.coalescer.start()
            try:
                enqueued = await runtime.backfill.sweep()
                await runtime.coalescer.drain()
            finally:
                await runtime.stop()
            click.echo(f"Backfill sweep enqueued {enqueued} candidates")
            return

        if metrics:
            get_metrics().start_server()

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, stop_event.set)

        await runtime.start()
        try:
            await stop_event.wait()
        finally:
            await runtime.stop()

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check database connectivity and evaluator configuration."""
    import structlog

    from applicant_scoring.scoring.config import ScoringConfig
    from applicant_scoring.storage.database import Database

    logger = structlog.get_logger()

    async def check() -> bool:
        results: dict[str, bool] = {}

        try:
            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        config = ScoringConfig()
        results["evaluator_configured"] = config.configured
        results["extraction_configured"] = bool(config.extraction_url)

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)
        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
        click.echo("-" * 40)

        healthy = results["postgres"] and results["evaluator_configured"]
        if healthy:
            click.echo(click.style("All core services healthy!", fg="green"))
        else:
            click.echo(click.style("Some services unhealthy!", fg="red"))
        return healthy

    if not asyncio.run(check()):
        sys.exit(1)


def _fmt_score(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1f}"


if __name__ == "__main__":
    main()
