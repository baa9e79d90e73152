"""Protean Engine runner for the checkout domain.

Starts Engine workers that process events asynchronously when
``event_processing`` is ``async`` (the production overlay), so handlers
such as order notifications run outside the request.

Usage:
    python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from checkout.domain import checkout

    checkout.init()
    return checkout


async def run(test_mode: bool = False):
    engine = Engine(_get_domain(), test_mode=test_mode)
    await engine.run()


def main():
    from checkout.utils.logging import configure_logging

    parser = argparse.ArgumentParser(description="Aurelia checkout Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    configure_logging()
    asyncio.run(run(test_mode=args.test_mode))


if __name__ == "__main__":
    main()
