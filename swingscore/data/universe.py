"""NSE stock catalog — symbol, company name, sector and market-cap band.

Used to name screened stocks and to screen one sector at a time.
"""

from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class StockInfo:
    symbol: str
    name: str
    sector: str
    market_cap: str  # "Large Cap" or "Mid Cap"

    def to_dict(self) -> dict:
        return asdict(self)


def _large(symbol: str, name: str, sector: str) -> StockInfo:
    return StockInfo(symbol, name, sector, "Large Cap")


STOCKS: tuple[StockInfo, ...] = (
    # Banking
    _large("HDFCBANK", "HDFC Bank Ltd", "Banking"),
    _large("ICICIBANK", "ICICI Bank Ltd", "Banking"),
    _large("SBIN", "State Bank of India", "Banking"),
    _large("KOTAKBANK", "Kotak Mahindra Bank", "Banking"),
    _large("AXISBANK", "Axis Bank Ltd", "Banking"),
    # NBFC
    _large("BAJFINANCE", "Bajaj Finance Ltd", "NBFC"),
    _large("BAJAJFINSV", "Bajaj Finserv Ltd", "NBFC"),
    # IT
    _large("TCS", "Tata Consultancy Services", "IT"),
    _large("INFY", "Infosys Ltd", "IT"),
    _large("HCLTECH", "HCL Technologies Ltd", "IT"),
    _large("WIPRO", "Wipro Ltd", "IT"),
    _large("TECHM", "Tech Mahindra Ltd", "IT"),
    # Oil & Gas
    _large("RELIANCE", "Reliance Industries Ltd", "Oil & Gas"),
    _large("ONGC", "Oil & Natural Gas Corp", "Oil & Gas"),
    # Automobile
    _large("MARUTI", "Maruti Suzuki India", "Automobile"),
    _large("M&M", "Mahindra & Mahindra", "Automobile"),
    _large("EICHERMOT", "Eicher Motors Ltd", "Automobile"),
    # Pharma
    _large("SUNPHARMA", "Sun Pharmaceutical", "Pharma"),
    _large("DRREDDY", "Dr Reddys Laboratories", "Pharma"),
    _large("CIPLA", "Cipla Ltd", "Pharma"),
    # FMCG
    _large("HINDUNILVR", "Hindustan Unilever", "FMCG"),
    _large("ITC", "ITC Ltd", "FMCG"),
    _large("NESTLEIND", "Nestle India Ltd", "FMCG"),
    # Metals
    _large("TATASTEEL", "Tata Steel Ltd", "Metals"),
    _large("JSWSTEEL", "JSW Steel Ltd", "Metals"),
    _large("HINDALCO", "Hindalco Industries", "Metals"),
    # Power
    _large("POWERGRID", "Power Grid Corp of India", "Power"),
    _large("NTPC", "NTPC Ltd", "Power"),
    # Infrastructure and cement
    _large("LT", "Larsen & Toubro Ltd", "Infrastructure"),
    _large("ADANIPORTS", "Adani Ports & SEZ", "Infrastructure"),
    _large("ULTRACEMCO", "UltraTech Cement Ltd", "Cement"),
    # Consumer
    _large("BHARTIARTL", "Bharti Airtel Ltd", "Telecom"),
    _large("TITAN", "Titan Company Ltd", "Consumer Durables"),
    _large("ASIANPAINT", "Asian Paints Ltd", "Paints"),
    _large("TRENT", "Trent Ltd", "Retail"),
    # Capital goods
    _large("HAL", "Hindustan Aeronautics", "Capital Goods"),
    _large("BEL", "Bharat Electronics Ltd", "Capital Goods"),
)

_BY_SYMBOL: dict[str, StockInfo] = {s.symbol: s for s in STOCKS}


def get_stock_info(symbol: str) -> Optional[StockInfo]:
    return _BY_SYMBOL.get(symbol.upper())


def sector_counts(symbols: Optional[list[str]] = None) -> dict[str, int]:
    """Number of catalogued stocks per sector, in catalog order.

    With *symbols*, only those symbols are counted.
    """
    wanted = None if symbols is None else {s.upper() for s in symbols}
    counts: dict[str, int] = {}
    for stock in STOCKS:
        if wanted is None or stock.symbol in wanted:
            counts[stock.sector] = counts.get(stock.sector, 0) + 1
    return counts


def filter_by_sector(symbols: list[str], sector: str) -> list[str]:
    """Symbols whose catalogued sector matches *sector* (case-insensitive).

    Symbols missing from the catalog never match.
    """
    wanted = sector.strip().lower()
    kept = []
    for symbol in symbols:
        info = get_stock_info(symbol)
        if info is not None and info.sector.lower() == wanted:
            kept.append(symbol)
    return kept
