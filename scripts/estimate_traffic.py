#!/usr/bin/env python3
"""
Traffic Estimate Runner

Runs the traffic estimation pipeline for one domain and prints the estimate
as JSON.

Usage:
    # Optional, enables branded traffic reconciliation:
    export KEYWORDS_EVERYWHERE_API_KEY=your_key
    export VALUESERP_API_KEY=your_key

    python scripts/estimate_traffic.py example.co.uk

    # With options:
    python scripts/estimate_traffic.py example.co.uk \
        --html saved_homepage.html \
        --as-of 2025-03-01 \
        --verbose
"""

import asyncio
import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_estimate(domain: str, html_path: str = None, as_of: date = None) -> dict:
    """Run the pipeline and return the estimate dict."""
    load_dotenv()

    # Import after load_dotenv so settings see .env values
    from src.collector import ScrapedPage
    from src.traffic import estimate_traffic
    from src.utils import normalize_domain

    page = None
    if html_path:
        html = Path(html_path).read_text(encoding="utf-8", errors="replace")
        page = ScrapedPage(domain=normalize_domain(domain), html=html)
        logger.info(f"Using saved HTML from {html_path} ({len(html)} chars)")

    estimate = await estimate_traffic(domain, page=page, as_of=as_of)
    return estimate.to_dict()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Estimate monthly traffic for a domain and print JSON"
    )
    parser.add_argument(
        "domain",
        help="Domain to estimate (e.g., example.co.uk)"
    )
    parser.add_argument(
        "--html",
        default=None,
        help="Path to saved homepage HTML (skips fetching)"
    )
    parser.add_argument(
        "--as-of",
        default=None,
        type=date.fromisoformat,
        help="Trend ends the month before this date, YYYY-MM-DD (default: today)"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging (score breakdowns)"
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    result = asyncio.run(run_estimate(args.domain, html_path=args.html, as_of=args.as_of))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
