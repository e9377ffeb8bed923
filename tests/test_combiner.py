"""Tests for combining per-file results."""

from decimal import Decimal

from pledge_consolidator.models.household import AccountAggregate, MergePolicy
from pledge_consolidator.models.results import FileParseResult, RowError
from pledge_consolidator.processing.combiner import combine_results


def create_aggregate(
    account_id: str,
    amounts: dict[int, str],
    age: int | None = 45,
    zip_code: str | None = "07030",
    first_row_index: int = 2,
    source_file: str = "a.csv",
) -> AccountAggregate:
    """Helper to create an AccountAggregate from string amounts."""
    return AccountAggregate(
        account_id=account_id,
        year_amounts={year: Decimal(v) for year, v in amounts.items()},
        age=age,
        zip_code=zip_code,
        first_row_index=first_row_index,
        source_file=source_file,
    )


def create_result(
    file_name: str,
    *aggregates: AccountAggregate,
    errors: tuple[RowError, ...] = (),
    has_negative_values: bool = False,
) -> FileParseResult:
    """Helper to create a FileParseResult from aggregates."""
    years: set[int] = set()
    for aggregate in aggregates:
        years.update(aggregate.year_amounts)
    return FileParseResult(
        file_name=file_name,
        aggregates={a.account_id: a for a in aggregates},
        errors=errors,
        years_found=frozenset(years),
        has_negative_values=has_negative_values,
    )


class TestCombineResults:
    """Tests for combine_results."""

    def test_two_single_year_files(self) -> None:
        """Test files with different fiscal years combine into a comparison."""
        fy25 = create_result(
            "fy25.csv",
            create_aggregate("ACC001", {2025: "1000"}),
            create_aggregate("ACC002", {2025: "500"}),
        )
        fy26 = create_result(
            "fy26.csv",
            create_aggregate("ACC001", {2026: "1200"}),
            create_aggregate("ACC002", {2026: "600"}),
        )

        combined = combine_results([fy25, fy26])

        assert combined.ok
        assert combined.all_years == [2026, 2025]
        assert combined.current_year == 2026
        assert combined.prior_year == 2025
        assert combined.total_accounts == 2
        assert combined.combined["ACC001"].amount_for(2026) == Decimal("1200")
        assert combined.combined["ACC001"].amount_for(2025) == Decimal("1000")

    def test_one_year_across_files_is_an_error(self) -> None:
        """Test the two-year minimum is enforced at combine time."""
        a = create_result("a.csv", create_aggregate("ACC001", {2025: "1000"}))
        b = create_result("b.csv", create_aggregate("ACC002", {2025: "500"}))

        combined = combine_results([a, b])

        assert not combined.ok
        assert combined.error == (
            "Only 1 fiscal year(s) found; at least 2 are required for year-over-year comparison"
        )
        assert combined.combined == {}
        assert combined.all_years == [2025]

    def test_no_years(self) -> None:
        """Test combining nothing."""
        combined = combine_results([])
        assert combined.error is not None
        assert combined.error.startswith("Only 0 fiscal year(s) found")

    def test_same_account_summed(self) -> None:
        """Test amounts for the same account and year are added."""
        a = create_result("a.csv", create_aggregate("ACC001", {2025: "500", 2026: "600"}))
        b = create_result("b.csv", create_aggregate("ACC001", {2025: "300", 2026: "400"}))

        combined = combine_results([a, b])

        account = combined.combined["ACC001"]
        assert combined.total_accounts == 1
        assert account.amount_for(2026) == Decimal("1000")
        assert account.amount_for(2025) == Decimal("800")

    def test_duplicate_file_doubles_totals(self) -> None:
        """Test that combining the same file twice doubles every total."""
        a = create_result(
            "a.csv",
            create_aggregate("A1", {2025: "800", 2024: "400"}),
            create_aggregate("B2", {2025: "-50.25"}),
        )

        combined = combine_results([a, a])

        for account_id, original in a.aggregates.items():
            for year, amount in original.year_amounts.items():
                assert combined.combined[account_id].amount_for(year) == amount * 2

    def test_order_independent_amounts(self) -> None:
        """Test numeric fields do not depend on file order."""
        a = create_result(
            "a.csv",
            create_aggregate("A1", {2025: "100", 2024: "10"}, age=40),
            create_aggregate("B2", {2024: "7"}),
        )
        b = create_result(
            "b.csv",
            create_aggregate("A1", {2025: "1.5"}, age=41),
            create_aggregate("C3", {2025: "9"}),
        )

        ab = combine_results([a, b]).combined
        ba = combine_results([b, a]).combined

        assert set(ab) == set(ba)
        for account_id in ab:
            assert dict(ab[account_id].year_amounts) == dict(ba[account_id].year_amounts)

    def test_inputs_not_mutated(self) -> None:
        """Test per-file aggregates are left untouched."""
        first = create_aggregate("A1", {2025: "100"})
        a = create_result("a.csv", first)
        b = create_result("b.csv", create_aggregate("A1", {2025: "50", 2024: "5"}))

        combine_results([a, b])

        assert dict(first.year_amounts) == {2025: Decimal("100")}
        assert dict(a.aggregates["A1"].year_amounts) == {2025: Decimal("100")}

    def test_first_wins_policy(self) -> None:
        """Test age and zip come from the first file by default."""
        a = create_result("a.csv", create_aggregate("A1", {2025: "1"}, age=40, zip_code="07030"))
        b = create_result(
            "b.csv",
            create_aggregate("A1", {2024: "1"}, age=50, zip_code="10001", source_file="b.csv"),
        )

        account = combine_results([a, b]).combined["A1"]
        assert account.age == 40
        assert account.zip_code == "07030"
        assert account.source_file == "a.csv"

    def test_last_wins_policy(self) -> None:
        """Test later non-null age and zip replace earlier ones."""
        a = create_result("a.csv", create_aggregate("A1", {2025: "1"}, age=40, zip_code="07030"))
        b = create_result("b.csv", create_aggregate("A1", {2024: "1"}, age=50, zip_code=None))

        account = combine_results([a, b], MergePolicy.LAST_WINS).combined["A1"]
        assert account.age == 50
        assert account.zip_code == "07030"

    def test_errors_carried_in_order(self) -> None:
        """Test per-file errors come through in file order."""
        e1 = RowError(row=3, message="first", file_name="a.csv")
        e2 = RowError(row=2, message="second", file_name="b.csv")
        a = create_result("a.csv", create_aggregate("A1", {2025: "1"}), errors=(e1,))
        b = create_result("b.csv", create_aggregate("A1", {2024: "1"}), errors=(e2,))

        combined = combine_results([a, b])
        assert combined.errors == [e1, e2]

    def test_errors_kept_on_year_failure(self) -> None:
        """Test row errors are still reported when the combine fails."""
        e1 = RowError(row=3, message="bad", file_name="a.csv")
        a = create_result("a.csv", create_aggregate("A1", {2025: "1"}), errors=(e1,))

        combined = combine_results([a])
        assert not combined.ok
        assert combined.errors == [e1]

    def test_negative_flag(self) -> None:
        """Test the negative-values flag is the union across files."""
        a = create_result("a.csv", create_aggregate("A1", {2025: "1"}))
        b = create_result("b.csv", create_aggregate("A1", {2024: "1"}), has_negative_values=True)
        assert combine_results([a, b]).has_negative_values is True
        assert combine_results([a, a]).has_negative_values is False
