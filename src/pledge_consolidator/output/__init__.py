"""CSV output for comparison rows and errors."""

from pledge_consolidator.output.csv_exporter import CSVExporter

__all__ = ["CSVExporter"]
