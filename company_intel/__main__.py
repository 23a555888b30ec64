"""CLI entry point for company intelligence enrichment."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from company_intel.errors import ConfigurationError
from company_intel.models import EnrichmentOptions, EnrichmentRecord
from company_intel.models.database import DBEnrichment, get_session
from company_intel.pipeline import EnrichmentOrchestrator

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

# --skip choices and the option each one turns off
SKIPPABLE = {
    "firmographic": "include_firmographic",
    "tickers": "include_ticker_discovery",
    "sec": "include_sec",
    "signals": "include_sec_signals",
    "web": "include_web_intel",
    "financial-docs": "include_financial_docs",
    "news": "include_news",
    "tech-stack": "include_tech_stack",
    "scraping": "include_scraping",
}


def build_options(args: argparse.Namespace) -> EnrichmentOptions:
    values = {field: False for name, field in SKIPPABLE.items() if name in (args.skip or [])}
    values["include_international"] = not args.no_international
    if args.concurrency is not None:
        values["max_concurrency"] = args.concurrency
    if args.timeout is not None:
        values["task_timeout"] = args.timeout
    return EnrichmentOptions(**values)


def load_identifiers(args: argparse.Namespace) -> list[str]:
    """Identifiers from the command line plus one per non-blank line of --file."""
    identifiers = list(args.identifiers)
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            identifiers.extend(line.strip() for line in f if line.strip() and not line.startswith("#"))
    return identifiers


async def run_enrichment(
    orchestrator: EnrichmentOrchestrator,
    identifiers: list[str],
    is_domain: bool,
    options: EnrichmentOptions,
) -> list[EnrichmentRecord]:
    if len(identifiers) == 1:
        return [await orchestrator.enrich(identifiers[0], is_domain, options)]
    return await orchestrator.enrich_many(identifiers, is_domain, options)


def save_results(records: list[EnrichmentRecord]):
    """Persist enrichment records to the local database."""
    session = get_session()
    try:
        for record in records:
            session.add(DBEnrichment(
                identifier=record.identifier,
                company_name=record.profile.name if record.profile else None,
                ticker=record.ticker_symbol,
                success=record.success,
                error_message=record.error,
                processing_time=record.processing_time,
                data=record.model_dump_json(),
            ))
        session.commit()
    finally:
        session.close()


def export_to_json(records: list[EnrichmentRecord], output_path: Path):
    """Export records to a JSON file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [record.model_dump(mode="json") for record in records]
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def print_summary(records: list[EnrichmentRecord]):
    """Print a summary of results to console."""
    print("\n" + "=" * 60)
    print("COMPANY INTELLIGENCE - ENRICHMENT SUMMARY")
    print("=" * 60)

    succeeded = [r for r in records if r.success]
    public = [r for r in succeeded if r.is_public]

    print(f"\nTotal identifiers: {len(records)}")
    print(f"Enriched: {len(succeeded)}")
    print(f"Public companies: {len(public)}")

    for r in records:
        fields = r.enrichment_fields
        print("\n" + "-" * 60)
        print(f"{fields.get('company_name') or r.identifier}")
        if not r.success:
            print(f"   FAILED: {r.error}")
            continue

        if r.ticker_symbol:
            method = fields.get("ticker_method")
            confidence = fields.get("ticker_confidence")
            detail = f" via {method} ({confidence:.2f})" if method and confidence is not None else ""
            print(f"   Ticker: {r.ticker_symbol}{detail}")
        print(f"   Public: {'Yes' if r.is_public else 'No'}")
        if fields.get("cik"):
            print(f"   CIK: {fields['cik']}")
        if fields.get("recent_filings"):
            print(
                f"   Filings: {fields['recent_filings']} recent, "
                f"{fields.get('filing_documents_downloaded', 0)} downloaded"
            )
        if r.signals:
            summary = r.signals.summary
            print(
                f"   Signals: {summary.total_signals} | Opportunity: {summary.opportunity_score:.0f} "
                f"| Urgency: {summary.urgency_score:.0f}"
            )
        if fields.get("data_sources"):
            print(f"   Sources: {', '.join(fields['data_sources'])}")
        if r.task_errors:
            print(f"   Degraded: {', '.join(sorted(r.task_errors))}")
        print(f"   Time: {r.processing_time:.1f}s")

    print("\n" + "=" * 60)


def print_tickers(results: list[dict]):
    print("\n" + "=" * 60)
    print("TICKER DISCOVERY")
    print("=" * 60)
    for r in results:
        if r["ticker"]:
            print(f"{r['company_name']}: {r['ticker']} ({r['method']}, {r['confidence']:.2f})")
        else:
            print(f"{r['company_name']}: not found")
    print("=" * 60)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Company Intelligence - Enrich organizations by domain or name"
    )
    parser.add_argument(
        "identifiers",
        nargs="*",
        help="Domains (default) or company names to enrich",
    )
    parser.add_argument(
        "--file", "-f",
        type=Path,
        help="File with one identifier per line",
    )
    parser.add_argument(
        "--name", "-n",
        action="store_true",
        help="Treat identifiers as company names instead of domains",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write full records to this JSON file",
    )
    parser.add_argument(
        "--concurrency", "-c",
        type=int,
        help="Maximum concurrent tasks per enrichment and batch size",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Per-task timeout in seconds",
    )
    parser.add_argument(
        "--no-international",
        action="store_true",
        help="Skip European and Asian exchange searches",
    )
    parser.add_argument(
        "--skip",
        nargs="+",
        choices=sorted(SKIPPABLE),
        help="Enrichment stages to skip",
    )
    parser.add_argument(
        "--tickers-only",
        action="store_true",
        help="Only run ticker discovery (identifiers are company names)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use offline mock collaborators",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save results to the local database",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.concurrency is not None and args.concurrency < 1:
        parser.error("--concurrency must be at least 1")

    try:
        identifiers = load_identifiers(args)
    except OSError as e:
        logger.error(f"Failed to read identifiers: {e}")
        sys.exit(1)

    if not identifiers:
        parser.error("Provide at least one identifier or --file")

    try:
        if args.mock:
            logger.info("Using mock collaborators")
            orchestrator = EnrichmentOrchestrator.with_mocks()
        else:
            orchestrator = EnrichmentOrchestrator.from_settings()
    except ConfigurationError as e:
        logger.error(f"{e}. Set it in the environment or .env, or run with --mock")
        sys.exit(1)

    try:
        if args.tickers_only:
            results = asyncio.run(orchestrator.discover_tickers(
                [{"name": identifier} for identifier in identifiers],
                include_international=not args.no_international,
                max_concurrency=args.concurrency,
            ))
            print_tickers(results)
            if args.output:
                args.output.parent.mkdir(parents=True, exist_ok=True)
                args.output.write_text(json.dumps(results, indent=2), encoding="utf-8")
            return

        records = asyncio.run(run_enrichment(
            orchestrator,
            identifiers,
            is_domain=not args.name,
            options=build_options(args),
        ))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Enrichment failed: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    if args.output:
        export_to_json(records, args.output)
        logger.info(f"Results exported to {args.output}")

    if args.save:
        save_results(records)
        logger.info(f"Saved {len(records)} records to the database")

    print_summary(records)

    if not any(r.success for r in records):
        sys.exit(1)


if __name__ == "__main__":
    main()
