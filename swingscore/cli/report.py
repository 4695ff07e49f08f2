"""CLI report — prints a score result to the console."""

from swingscore.data.universe import get_stock_info
from swingscore.scoring.engine import ScoreResult


def format_score_report(symbol: str, result: ScoreResult) -> str:
    """Format and print a score result.

    Args:
        symbol: Ticker shown in the header.
        result: Output of ``score_bars``.

    Returns:
        The formatted string (also printed to stdout).
    """
    price_str = f"{result.current_price:,.2f}" if result.current_price is not None else "N/A"
    change_str = f"{result.price_change:+.2f}%" if result.price_change is not None else "N/A"

    lines = [
        f"──────────────── {symbol} ────────────────",
        f"  Score:           {result.score:.1f} / {result.max_score:.0f}",
        f"  Signal:          {result.signal.value} ({result.confidence})",
        f"  Price:           {price_str} ({change_str})",
    ]

    if result.error:
        lines.append(f"  Error:           {result.error}")
    else:
        for factor, factor_score in result.breakdown.items():
            lines.append(
                f"  {factor.value:<16} {factor_score.score:>4.1f}/{factor_score.max:<4.1f}"
                f" {'✓' if factor_score.passed else ' '} {factor_score.reasons[0]}"
            )
        setup = result.trade_setup
        if setup is not None:
            lines.append(
                f"  Setup:           entry {setup.entry:.2f}  stop {setup.stop_loss:.2f}"
                f"  T1 {setup.target1:.2f}  T2 {setup.target2:.2f}  R:R 1:{setup.risk_reward_ratio}"
            )
        if result.patterns:
            lines.append(f"  Patterns:        {', '.join(p.name for p in result.patterns)}")
        if result.confluence is not None:
            lines.append(f"  Confluence:      {result.confluence.summary}")

    lines.append("─" * 42)
    output = "\n".join(lines)
    print(output)
    return output


def format_screen_table(stocks) -> str:
    """One line per screened stock, best first."""
    lines = [f"{'SYMBOL':<12}{'SCORE':>6}  {'SIGNAL':<12}SECTOR"]
    for stock in stocks:
        info = get_stock_info(stock.symbol)
        lines.append(
            f"{stock.symbol:<12}{stock.result.score:>6.1f}  "
            f"{stock.result.signal.value:<12}{info.sector if info else '-'}"
        )
    if not stocks:
        lines.append("  (no symbols met the threshold)")
    output = "\n".join(lines)
    print(output)
    return output
