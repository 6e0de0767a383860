"""Command line interface for the competitive intelligence pipeline using Typer and Rich."""

import asyncio
import sys
import uuid
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from competitive_intel import __version__
from competitive_intel.agents.collectors import CollectorFactory, HttpxFetcher
from competitive_intel.agents.communication import LogAlertSink, WebhookAlertSink
from competitive_intel.agents.sifters.guardrails import EthicalGuardrails
from competitive_intel.agents.sifters.signal_analyzer import SignalAnalyzer
from competitive_intel.agents.sifters.verification import (
    CrossReferenceRegistry,
    FactVerifier,
    KeywordAgreementChecker,
)
from competitive_intel.config.logging import configure_logging, get_logger
from competitive_intel.config.pipeline_config import load_pipeline_config
from competitive_intel.config.settings import settings
from competitive_intel.data_management import SignalStore
from competitive_intel.data_management.schemas import (
    ChannelType,
    DataSource,
    MonitoringRecord,
    RateLimit,
    SourceType,
)
from competitive_intel.exceptions import ConfigurationError
from competitive_intel.pipeline import MonitoringPipeline

app = typer.Typer(
    help="Competitive intelligence monitoring pipeline CLI",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

ADHOC_RATE_LIMIT = RateLimit(requests_per_hour=60, requests_per_day=1000, burst_limit=10)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override CI_LOG_LEVEL"),
) -> None:
    """Competitive intelligence monitoring pipeline CLI."""
    if log_level:
        try:
            configure_logging(level=log_level)
        except ValueError:
            console.print(f"[red]✗[/red] Unknown log level: {log_level}")
            raise typer.Exit(2)


def _load_config(config_path: Optional[str]):
    try:
        return load_pipeline_config(config_path or settings.pipeline_config_path)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)


@app.command()
def status(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Pipeline config JSON"),
) -> None:
    """
    Display pipeline configuration.

    Shows logging settings, guardrail toggles, performance limits and the
    configured collectors.
    """
    logger.info("Displaying pipeline status")
    config = _load_config(config_path)

    table = Table(title="Competitive Intel Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)
    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    checks = config.guardrails.ethical_checks
    table.add_row(
        "Guardrails",
        "✓ Enabled" if checks.enabled else "✗ Disabled",
        f"robots.txt: {checks.check_robots_txt}, public only: {checks.require_public_sources}",
    )

    perf = config.performance
    table.add_row(
        "Processing",
        "✓ Configured",
        f"batch {perf.batch_size}, concurrency {perf.max_concurrency}, interval {perf.loop_interval}s",
    )

    alerting = "Webhook" if settings.alert_webhook_url else "Log only"
    table.add_row("Alerting", "✓ Active", alerting)
    table.add_row("Collectors", f"{len(config.collectors)} configured", ", ".join(c.kind for c in config.collectors) or "-")

    console.print(table)


@app.command("check-source")
def check_source(
    url: str = typer.Argument(..., help="Source URL to validate"),
    source_type: SourceType = typer.Option(SourceType.WEB_SCRAPING, "--type", "-t", help="Source type"),
    reliability: float = typer.Option(0.8, help="Assumed source reliability"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Pipeline config JSON"),
) -> None:
    """Run source guardrails (including robots.txt for scraped sources) against a URL."""
    config = _load_config(config_path)
    source = DataSource(
        id=f"adhoc-{uuid.uuid4().hex[:8]}",
        name=url,
        type=source_type,
        url=url,
        rate_limit=ADHOC_RATE_LIMIT,
        reliability=reliability,
    )

    async def _check():
        async with HttpxFetcher(timeout=config.performance.request_timeout, user_agent=settings.user_agent) as fetcher:
            guardrails = EthicalGuardrails(config.guardrails, fetcher=fetcher, user_agent=settings.user_agent)
            return await guardrails.validate_source(source)

    result = asyncio.run(_check())

    if result.is_valid:
        console.print(f"[green]✓[/green] {url} passes source validation")
    else:
        console.print(f"[red]✗[/red] {url} fails source validation")

    if result.errors:
        table = Table(title="Errors", header_style="bold red")
        table.add_column("Code", style="red")
        table.add_column("Field")
        table.add_column("Message")
        for error in result.errors:
            table.add_row(error.code, error.field, error.message)
        console.print(table)

    for warning in result.warnings:
        console.print(f"[yellow]⚠[/yellow] {warning.message}")

    if not result.is_valid:
        raise typer.Exit(1)


@app.command("verify-text")
def verify_text(
    text: str = typer.Argument(..., help="Text to analyze and verify"),
    competitor: str = typer.Option("adhoc", help="Competitor id"),
    source_url: str = typer.Option("https://example.com", help="URL the text came from"),
    confidence: float = typer.Option(0.7, help="Collector confidence"),
) -> None:
    """Analyze a piece of text into a signal and show its verification result."""
    source = DataSource(
        id=f"adhoc-{uuid.uuid4().hex[:8]}",
        name=source_url,
        type=SourceType.WEB_SCRAPING,
        url=source_url,
        rate_limit=ADHOC_RATE_LIMIT,
        reliability=0.5,
    )
    record = MonitoringRecord(
        id=f"adhoc-{uuid.uuid4().hex[:12]}",
        competitor_id=competitor,
        channel=ChannelType.PRODUCT_UPDATES,
        raw_data=text,
        confidence=confidence,
        source=source,
    )

    signal = SignalAnalyzer().analyze(record)
    result = asyncio.run(FactVerifier().verify(signal))

    console.print(Panel(
        f"[bold]{signal.title}[/bold]\n\n{signal.description}",
        title=f"{signal.type.value} ({signal.impact.strategic.value})",
        border_style="cyan",
    ))

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="yellow")
    table.add_row("Evidence level", result.evidence_level.value)
    table.add_row("Factual", "yes" if result.is_factual else "no")
    table.add_row("Confidence", f"{result.confidence_level:.2f}")
    table.add_row("Credibility", f"{result.credibility.overall:.2f}")
    table.add_row("Keywords", ", ".join(signal.metadata.keywords))
    table.add_row("Notes", result.verification_notes)
    console.print(table)

    for flag in result.speculation_flags:
        console.print(f"[yellow]⚠[/yellow] \"{flag.text}\" - {flag.reason}")
        if flag.suggested_revision:
            console.print(f"    [dim]suggested: {flag.suggested_revision}[/dim]")


@app.command()
def run(
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Pipeline config JSON"),
    duration: Optional[float] = typer.Option(None, help="Seconds to run before stopping (default: until interrupted)"),
) -> None:
    """Run the monitoring pipeline with the configured collectors."""
    config = _load_config(config_path)
    if not config.collectors:
        console.print("[yellow]⚠[/yellow] No collectors configured")
        raise typer.Exit(1)

    async def _run():
        async with HttpxFetcher(timeout=config.performance.request_timeout, user_agent=settings.user_agent) as fetcher:
            store = SignalStore(settings.signal_store_path)
            if settings.signal_store_path:
                store.load_from_file()
            alerting = (
                WebhookAlertSink(settings.alert_webhook_url)
                if settings.alert_webhook_url
                else LogAlertSink()
            )
            verifier = FactVerifier(
                registry=CrossReferenceRegistry(config.analysis.cross_reference_sources),
                checker=KeywordAgreementChecker(fetcher),
                concurrency=config.analysis.cross_reference_concurrency,
                minimum_evidence=config.analysis.minimum_evidence,
            )
            pipeline = MonitoringPipeline(
                storage=store,
                alerting=alerting,
                fetcher=fetcher,
                verifier=verifier,
                config=config,
            )

            factory = CollectorFactory(fetcher, default_schedule=config.monitoring.default_schedule)
            for spec in config.collectors:
                pipeline.add_collector(factory.from_spec(spec))

            await pipeline.start()
            console.print(f"[green]✓[/green] Pipeline running with {len(pipeline.collectors)} collectors")
            try:
                if duration:
                    await asyncio.sleep(duration)
                else:
                    await asyncio.Event().wait()
            finally:
                await pipeline.stop()
            return await pipeline.get_metrics()

    try:
        metrics = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted[/dim]")
        return
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Pipeline Metrics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="yellow")
    for name, value in metrics.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]Competitive Intel Monitor[/bold]")
    console.print(f"Version: {__version__}")


if __name__ == "__main__":
    app()
