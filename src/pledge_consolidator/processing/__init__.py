"""Import pipeline stages: row parsing, aggregation, combining and row building."""

from pledge_consolidator.processing.fiscal_year import extract_fiscal_year
from pledge_consolidator.processing.household_aggregator import HouseholdAggregator
from pledge_consolidator.processing.transaction_parser import (
    RowOutcome,
    TransactionParser,
)
from pledge_consolidator.processing.combiner import combine_results
from pledge_consolidator.processing.comparison_builder import build_comparison_rows
from pledge_consolidator.processing.pipeline import (
    FileOutcome,
    PledgeImporter,
    import_files,
)

__all__ = [
    "extract_fiscal_year",
    "HouseholdAggregator",
    "RowOutcome",
    "TransactionParser",
    "combine_results",
    "build_comparison_rows",
    "FileOutcome",
    "PledgeImporter",
    "import_files",
]
