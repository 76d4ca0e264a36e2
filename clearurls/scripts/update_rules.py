"""Refresh the rule file from the upstream ClearURLs document.

Usage:
    python -m clearurls.scripts.update_rules            # download, fall back to local copy
    python -m clearurls.scripts.update_rules --local    # validate the local copy only
"""

from __future__ import annotations

import argparse
import logging
import sys

from clearurls.config import get_settings
from clearurls.errors import RulesetError
from clearurls.services.rules import DEFAULT_RULES_PATH
from clearurls.services.rules_fetch import RulesFetcher

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Update the ClearURLs rule file")
    parser.add_argument(
        "--local",
        action="store_true",
        help="Do not download; only validate the existing rule file",
    )
    parser.add_argument("--url", default=settings.rules_url, help="Rule document URL")
    parser.add_argument(
        "--output",
        default=settings.rules_path or str(DEFAULT_RULES_PATH),
        help="Where to store the rule document",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(settings.rules_fetch_timeout),
        help="Download timeout in seconds",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    fetcher = RulesFetcher(args.url, args.output, timeout_seconds=args.timeout)
    try:
        result = fetcher.update(local_only=args.local)
    except RulesetError as e:
        logger.error("Rules update failed: %s", e)
        return 1
    finally:
        fetcher.close()

    logger.info(
        "Rules ready at %s (source=%s, providers=%d, changed=%s)",
        result.path,
        result.source,
        result.provider_count,
        result.changed,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
