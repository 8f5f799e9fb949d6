"""
Drive generator coroutines on top of asyncio.

Run with ``python examples/asyncio_pipeline.py``. Set ``DOCORO_DEBUG=1`` to
see every driver step logged.
"""

import asyncio

from loguru import logger

from docoro import coroutine


async def fetch_price(item: str) -> float:
    await asyncio.sleep(0.05)
    if item == "unicorn":
        raise LookupError(f"no price for {item}")
    return {"apple": 0.5, "pear": 0.75}.get(item, 1.0)


@coroutine
def price_or_default(item):
    try:
        return (yield fetch_price(item))
    except LookupError as exc:
        logger.warning("Falling back to default price: {}", exc)
        return 0.0


@coroutine
def basket_total(items):
    total = 0.0
    for item in items:
        total += yield price_or_default(item)
    return round(total, 2)


async def main() -> None:
    total = await basket_total(["apple", "pear", "unicorn", "kiwi"])
    logger.info("Basket total: {}", total)


if __name__ == "__main__":
    asyncio.run(main())
