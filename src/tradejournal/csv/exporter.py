"""CSV export of the trade journal."""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from tradejournal.core.timezone import now_utc
from tradejournal.domain.models import Trade
from tradejournal.services.trade_service import TradeService

CSV_COLUMNS = [
    "Ticker",
    "Entry Price",
    "Exit Price",
    "Quantity",
    "Entry Date",
    "Exit Date",
    "P&L",
    "Notes",
]


def default_filename(today: Optional[date] = None) -> str:
    """trades-YYYY-MM-DD.csv for the given (default: current UTC) day."""
    today = today or now_utc().date()
    return f"trades-{today.isoformat()}.csv"


class TradeCsvExporter:
    """
    CSV exporter for trade data.

    Exports the cached (optionally filtered) trade list in the same column
    layout the journal's trades page downloads.
    """

    def __init__(self, trade_service: TradeService):
        self._trades = trade_service

    def export_csv(
        self,
        path: Union[str, Path],
        trades: Optional[Iterable[Trade]] = None,
    ) -> Path:
        """
        Export trades to a CSV file.

        Args:
            path: Output file, or a directory to write default_filename() into
            trades: Trades to export (None = every cached trade)

        Returns:
            Path of the written file
        """
        file_path = Path(path)
        if file_path.is_dir():
            file_path = file_path / default_filename()
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", newline="", encoding="utf-8") as csvfile:
            self._write(csvfile, trades)
        return file_path

    def export_text(self, trades: Optional[Iterable[Trade]] = None) -> str:
        """Return the CSV document as a string."""
        buffer = io.StringIO()
        self._write(buffer, trades)
        return buffer.getvalue()

    def _write(self, stream, trades: Optional[Iterable[Trade]]) -> None:
        rows = self._trades.cached_trades() if trades is None else trades
        writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS)
        writer.writeheader()

        for trade in rows:
            if trade.is_temporary:
                continue
            writer.writerow({
                "Ticker": trade.ticker,
                "Entry Price": str(trade.entry_price),
                "Exit Price": str(trade.exit_price) if trade.exit_price is not None else "",
                "Quantity": str(trade.quantity),
                "Entry Date": trade.entry_date.isoformat(),
                "Exit Date": trade.exit_date.isoformat() if trade.exit_date else "",
                "P&L": str(trade.profit_loss) if trade.profit_loss is not None else "",
                "Notes": trade.notes or "",
            })
