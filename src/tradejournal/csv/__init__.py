"""CSV export utilities."""

from tradejournal.csv.exporter import TradeCsvExporter, CSV_COLUMNS, default_filename

__all__ = [
    "TradeCsvExporter",
    "CSV_COLUMNS",
    "default_filename",
]
