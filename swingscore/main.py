"""SwingScore — application entry point.

Boots the FastAPI server and provides the CLI entry point for serving,
scoring a single symbol and screening the configured universe.
"""

import logging

from fastapi import FastAPI

from swingscore.api.routers import router

app = FastAPI(title="SwingScore API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("swingscore")


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv=None) -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio

    from swingscore.api.routers import configure_routers
    from swingscore.config import load_config
    from swingscore.data.yahoo_client import YahooChartClient

    parser = argparse.ArgumentParser(description="SwingScore swing-trade scorer")
    parser.add_argument(
        "--mode",
        choices=["serve", "score", "screen"],
        default="serve",
        help="Run mode (default: serve)",
    )
    parser.add_argument("--symbol", help="Symbol to score (score mode)")
    parser.add_argument("--period", help="History period, e.g. 6mo or 1y")
    parser.add_argument("--sector", help="Only screen this sector (screen mode)")
    parser.add_argument(
        "--min-score",
        type=float,
        default=None,
        help="Minimum score to keep when screening",
    )
    args = parser.parse_args(argv)

    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    client = YahooChartClient(config)

    if args.mode == "score":
        if not args.symbol:
            parser.error("--symbol is required in score mode")
        asyncio.run(_score_symbol(client, args.symbol.upper(), args.period))
    elif args.mode == "screen":
        min_score = config.min_score if args.min_score is None else args.min_score
        asyncio.run(
            _screen(client, config, args.period or config.screen_period, min_score, args.sector)
        )
    else:
        configure_routers(client=client, config=config)
        _serve(config.api_port)


async def _score_symbol(client, symbol: str, period) -> None:
    """Fetch one symbol and print its report."""
    from swingscore.cli.report import format_score_report
    from swingscore.data.yahoo_client import DataFetchError
    from swingscore.screener import score_history

    try:
        history = await client.fetch_history(symbol, period)
    except DataFetchError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc
    format_score_report(symbol, score_history(history))


async def _screen(client, config, period: str, min_score: float, sector=None) -> None:
    """Screen the configured universe (or one sector) and print the table."""
    from swingscore.cli.report import format_screen_table
    from swingscore.screener import fetch_market_health, screen_symbols

    market = await fetch_market_health(client, period)
    if market is not None:
        logger.info("%s trend %s (%+.2f%%)", market.name, market.trend, market.change_percent)
    stocks = await screen_symbols(
        client,
        list(config.screen_symbols),
        period=period,
        min_score=min_score,
        market_health=market,
        sector=sector,
    )
    format_screen_table(stocks)


def _serve(port: int) -> None:
    import uvicorn

    logger.info("SwingScore API available at http://localhost:%d", port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    _run_cli()
