"""Protean Engine runner for the ordering domain.

In production the ordering domain processes events asynchronously. The
Engine delivers ``OrderPlaced`` and ``OrderStatusChanged`` to the stock,
cart, notification and read-row handlers outside the request that raised
them.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import asyncio

from protean.server.engine import Engine


async def run():
    from ordering.domain import ordering

    ordering.init()
    await Engine(ordering).run()


def main():
    asyncio.run(run())


if __name__ == "__main__":
    main()
