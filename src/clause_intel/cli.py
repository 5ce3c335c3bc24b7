"""
Command-line interface for Clause Intel.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog

from clause_intel.config import get_settings
from clause_intel.errors import AnalysisError

logger = structlog.get_logger(__name__)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Clause Intel: corpus analytics for agreement clause embeddings."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug

    if debug:
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(10),
        )


# =========================================================================
# Server Commands
# =========================================================================


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    click.echo(f"Starting Clause Intel API server on {host}:{port}")

    uvicorn.run(
        "clause_intel.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


# =========================================================================
# Analysis Commands
# =========================================================================


@cli.command()
@click.option("--seed", type=int, default=None, help="Random seed for a reproducible run")
def analyze(seed: Optional[int]) -> None:
    """Run the full corpus analysis."""
    from clause_intel.services.runner import get_analysis_runner

    click.echo("Running corpus analysis...")
    try:
        output = get_analysis_runner().run(seed=seed)
    except AnalysisError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\nClauses analyzed: {output.clauses_analyzed}")
    click.echo(f"Agreements analyzed: {output.agreements_analyzed}")
    click.echo(f"Clusters found: {output.clusters_found}")
    click.echo(f"Outliers detected: {output.outliers_detected}")
    click.echo(f"Insights generated: {output.insights_generated}")
    if output.duration_seconds is not None:
        click.echo(f"Duration: {output.duration_seconds:.2f}s")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print full result data as JSON")
def latest(as_json: bool) -> None:
    """Show the most recent result of each analysis type."""
    from clause_intel.services.corpus_stats import get_corpus_stats_service

    results = get_corpus_stats_service().latest()

    if not results:
        click.echo("No analysis results yet. Run: clause-intel analyze")
        return

    if as_json:
        payload = {key: result.model_dump(mode="json") for key, result in results.items()}
        click.echo(json.dumps(payload, indent=2))
        return

    click.echo("\n=== Latest Analysis ===\n")
    for key, result in results.items():
        click.echo(f"[{key}] {result.title}")
        click.echo(f"  {result.description}")
        click.echo(f"  Created: {result.created_at.isoformat()}")

    insights = results.get("insights")
    if insights:
        click.echo("\n=== Insights ===\n")
        for insight in insights.data.get("insights", []):
            click.echo(f"  ({insight['importance']}) {insight['title']}")
            click.echo(f"    {insight['description']}")


@cli.command()
@click.option("--type", "analysis_type", default=None, help="Only show one analysis type")
def history(analysis_type: Optional[str]) -> None:
    """List stored analysis results, oldest first."""
    from clause_intel.services.corpus_stats import get_corpus_stats_service

    results = get_corpus_stats_service().history(analysis_type)

    if not results:
        click.echo("No analysis results found.")
        return

    for result in results:
        click.echo(
            f"  #{result.id} {result.created_at.isoformat()} "
            f"[{result.analysis_type}] {result.description}"
        )


# =========================================================================
# Corpus Commands
# =========================================================================


@cli.command()
def stats() -> None:
    """Show corpus statistics."""
    from clause_intel.services.corpus_stats import get_corpus_stats_service

    statistics = get_corpus_stats_service().get_statistics()

    click.echo("\n=== Corpus Statistics ===\n")
    click.echo(f"Agreements: {statistics.agreement_count}")
    click.echo(f"Clauses: {statistics.clause_count}")
    click.echo(f"Clusters: {statistics.cluster_count}")
    click.echo(f"Outliers: {statistics.outlier_count}")
    click.echo(f"Analyzed: {'yes' if statistics.has_analysis else 'no'}")

    if statistics.clause_type_distribution:
        click.echo("\nClauses by Type:")
        for clause_type, count in statistics.clause_type_distribution.items():
            click.echo(f"  {clause_type}: {count}")

    click.echo("\nRisk Levels:")
    for level, count in statistics.risk_distribution.items():
        click.echo(f"  {level}: {count}")

    click.echo("\nFavorability:")
    for favorability, count in statistics.favorability_distribution.items():
        click.echo(f"  {favorability}: {count}")


@cli.command()
def agreements() -> None:
    """List agreements with their map coordinates."""
    from clause_intel.services.corpus_stats import get_corpus_stats_service

    views = get_corpus_stats_service().list_agreements()
    if not views:
        click.echo("No agreements found.")
        return

    for view in views:
        provider = view.provider or "unknown provider"
        click.echo(f"  {view.id}  {view.name} ({provider})  {_coords(view)}")


@cli.command()
@click.option("--type", "clause_type", default=None, help="Only clauses of this type")
@click.option("--agreement", "agreement_id", default=None, help="Only clauses of this agreement")
@click.option("--outliers", "outliers_only", is_flag=True, help="Only clauses flagged as outliers")
def clauses(clause_type: Optional[str], agreement_id: Optional[str], outliers_only: bool) -> None:
    """List clauses with cluster, outlier flag and map coordinates."""
    from clause_intel.services.corpus_stats import get_corpus_stats_service

    views = get_corpus_stats_service().list_clauses(
        clause_type=clause_type, agreement_id=agreement_id,
    )
    if outliers_only:
        views = [v for v in views if v.is_outlier]

    if not views:
        click.echo("No clauses found.")
        return

    for view in views:
        cluster = "-" if view.cluster_id is None else view.cluster_id
        flag = " OUTLIER" if view.is_outlier else ""
        click.echo(
            f"  {view.id}  [{view.clause_type}] {view.title}  "
            f"cluster={cluster} {_coords(view)}{flag}"
        )


def _coords(view) -> str:
    if view.x is None or view.y is None:
        return "(not analyzed)"
    return f"({view.x:.3f}, {view.y:.3f})"


@cli.command()
@click.argument("corpus_path", type=click.Path(exists=True, dir_okay=False))
def load(corpus_path: str) -> None:
    """
    Load agreements and clauses from a JSON file.

    The file holds an "agreements" list and a "clauses" list; every record
    carries its precomputed embedding.
    """
    from pydantic import ValidationError

    from clause_intel.models.corpus import AgreementItem, ClauseItem
    from clause_intel.storage.sql import get_corpus_store

    try:
        raw = json.loads(Path(corpus_path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(f"Error: {corpus_path} is not valid JSON: {e}", err=True)
        sys.exit(1)

    try:
        agreements = [AgreementItem.model_validate(a) for a in raw.get("agreements", [])]
        clauses = [ClauseItem.model_validate(c) for c in raw.get("clauses", [])]
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        click.echo(
            f"Error: {corpus_path} holds an invalid {e.title} record: {field}: {first['msg']}",
            err=True,
        )
        sys.exit(1)

    store = get_corpus_store()

    # Every embedding must match the corpus dimension, set by the first one seen
    dimension = next(
        (len(c.embedding) for c in store.list_clauses() if c.embedding), None,
    )
    for record in [*clauses, *agreements]:
        if not record.embedding:
            continue
        if dimension is None:
            dimension = len(record.embedding)
        elif len(record.embedding) != dimension:
            click.echo(
                f"Error: record {record.id} has a {len(record.embedding)}-dimensional "
                f"embedding, expected {dimension}",
                err=True,
            )
            sys.exit(1)

    names = {a.id: a.name for a in agreements}
    for clause in clauses:
        if not clause.agreement_name and clause.agreement_id in names:
            clause.agreement_name = names[clause.agreement_id]

    for agreement in agreements:
        store.add_agreement(agreement)
    for clause in clauses:
        store.add_clause(clause)

    logger.info("corpus_loaded", path=corpus_path, agreements=len(agreements), clauses=len(clauses))
    click.echo(f"Loaded {len(agreements)} agreement(s) and {len(clauses)} clause(s).")


# =========================================================================
# Database Commands
# =========================================================================


@cli.command()
def init_db() -> None:
    """Initialize database schema."""
    from clause_intel.storage.sql import SqlCorpusStore

    settings = get_settings()
    click.echo("Initializing database schema...")
    store = SqlCorpusStore()
    store.create_schema()
    store.close()
    click.echo(f"Schema ready at {settings.database_url}")


@cli.command()
@click.confirmation_option(prompt="Are you sure you want to clear all data?")
def clear_db() -> None:
    """Clear all agreements, clauses and analysis results."""
    from clause_intel.storage.sql import get_corpus_store

    deleted = get_corpus_store().clear_all()
    click.echo(
        f"Corpus cleared: {deleted['agreements']} agreement(s), "
        f"{deleted['clauses']} clause(s), {deleted['analysis_results']} result(s)."
    )


# =========================================================================
# Config Commands
# =========================================================================


@cli.command()
def config() -> None:
    """Show current configuration."""
    settings = get_settings()

    click.echo("\n=== Clause Intel Configuration ===\n")
    click.echo(f"Environment: {settings.environment}")
    click.echo(f"Debug: {settings.debug}")
    click.echo(f"\nDatabase: {settings.database_url}")
    click.echo(f"\nClusters: {settings.min_clusters}-{settings.max_clusters}")
    click.echo(f"K-means Iterations: {settings.kmeans_max_iter}")
    click.echo(f"Power Iterations: {settings.power_iteration_max_iter}")
    click.echo(f"Random Seed: {settings.random_seed}")


def main() -> None:
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
