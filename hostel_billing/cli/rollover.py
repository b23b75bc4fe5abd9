"""CLI entry point for the monthly billing period rollover.

Creates each active tenancy's rent charge for the period and carries unpaid
rent from the previous period into the tenancy's previous balance. Safe to
re-run: tenancies that already have a charge for the period are skipped.

Usage:
    python -m hostel_billing.cli.rollover                 # current period
    python -m hostel_billing.cli.rollover --period 2024-03

Exit Codes:
    0 - Success
    1 - Failure: invalid configuration/period or database error
"""

import argparse
import logging
import sys

from hostel_billing.services import unit_of_work
from hostel_billing.services.actor import SYSTEM
from hostel_billing.services.config import load_config
from hostel_billing.services.errors import BillingError
from hostel_billing.services.logging import setup_logging
from hostel_billing.services.periods import current_period
from hostel_billing.services.rollover_service import BillingPeriodRollover


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Open a billing period's rent charges")
    parser.add_argument(
        "--period",
        default=None,
        help="Period to open as YYYY-MM (default: current month)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the rollover.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)
    logger = logging.getLogger("hostel_billing")

    try:
        config = load_config()
        logger = setup_logging(config)
        period = args.period or current_period()
        logger.info("Starting billing rollover for %s", period)

        with unit_of_work(config.database_url) as uow:
            result = BillingPeriodRollover(uow, rent_due_day=config.rent_due_day).run_period(SYSTEM, period)

        logger.info(
            "Rollover finished for %s: %d created, %d skipped, %s carried forward",
            result.period,
            result.created,
            result.skipped,
            result.carried_forward,
        )
        return 0

    except KeyboardInterrupt:
        logger.warning("Rollover interrupted by user")
        return 1
    except (BillingError, ValueError) as e:
        logger.error(f"Rollover failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
