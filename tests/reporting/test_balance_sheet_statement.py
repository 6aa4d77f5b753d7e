"""Balance sheet generation: classification, A = L + E and comparatives."""

from datetime import date

import pytest

from ledger_engines.classifier import SectionKey
from ledger_kernel.domain.values import Money
from ledger_modules.reporting.models import LineStyle
from ledger_modules.reporting.statements import CURRENT_PERIOD_EARNINGS

JAN_31 = date(2024, 1, 31)
FEB_29 = date(2024, 2, 29)


def _usd(amount) -> Money:
    return Money.of(amount, "USD")


@pytest.fixture
def ledger(make_ledger):
    lg = make_ledger().standard_chart()
    lg.transfer(date(2024, 1, 2), "1000", "3000", "10000")
    lg.transfer(date(2024, 1, 3), "1000", "2000", "5000")
    lg.transfer(date(2024, 1, 4), "1100", "1000", "3000")
    return lg


class TestBalanceSheetEquation:

    def test_totals(self, ledger, report_for):
        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        assert report.total_assets == _usd("15000")
        assert report.total_liabilities == _usd("5000")
        assert report.total_equity == _usd("10000")
        assert report.total_liabilities_and_equity == _usd("15000")
        assert report.is_balanced

    def test_sections(self, ledger, report_for):
        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        current = report.section(SectionKey.CURRENT_ASSETS)
        assert [ln.account_number for ln in current.lines] == ["1000", "1100"]
        assert current.subtotal == _usd("15000")
        assert report.section(SectionKey.NON_CURRENT_ASSETS).lines == ()
        assert report.section(SectionKey.CURRENT_LIABILITIES).subtotal == _usd("5000")

    def test_earnings_line_keeps_equation(self, ledger, report_for):
        ledger.transfer(date(2024, 1, 10), "1000", "4000", "2500")
        ledger.transfer(date(2024, 1, 11), "6000", "1000", "700")

        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        equity = report.section(SectionKey.EQUITY)
        earnings = next(ln for ln in equity.lines if ln.description == CURRENT_PERIOD_EARNINGS)
        assert earnings.current_amount == _usd("1800")
        assert report.total_assets == _usd("16800")
        assert report.is_balanced

    def test_non_current_classification(self, ledger, report_for):
        ledger.transfer(date(2024, 1, 15), "1500", "2500", "4000")
        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        assert report.section(SectionKey.NON_CURRENT_ASSETS).subtotal == _usd("4000")
        assert report.section(SectionKey.NON_CURRENT_LIABILITIES).subtotal == _usd("4000")
        assert report.is_balanced

    def test_summary_lines(self, ledger, report_for):
        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        assert [ln.description for ln in report.summary] == [
            "Total Assets",
            "Total Liabilities",
            "Total Equity",
            "Total Liabilities and Equity",
        ]
        assert all(ln.style == LineStyle.TOTAL for ln in report.summary)

    def test_section_as_lines(self, ledger, report_for):
        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        lines = report.section(SectionKey.CURRENT_ASSETS).as_lines()
        assert lines[0].style == LineStyle.HEADER
        assert lines[-1].description == "Total Current Assets"
        assert lines[-1].current_amount == _usd("15000")


class TestBalanceSheetComparative:

    def test_comparative_totals_and_variance(self, ledger, report_for):
        ledger.transfer(date(2024, 2, 5), "1000", "3000", "2000")

        report = report_for(ledger).balance_sheet(ledger.id, FEB_29, comparative_date=JAN_31)
        assert report.total_assets == _usd("17000")
        assert report.comparative_totals.total_assets == _usd("15000")
        assert report.comparative_totals.is_balanced
        assert report.metadata.comparative_date == JAN_31

        cash = report.section(SectionKey.CURRENT_ASSETS).lines[0]
        assert cash.comparison.comparative_amount == _usd("12000")
        assert cash.comparison.variance == _usd("2000")
        assert str(cash.comparison.variance_percentage) == "16.67"

    def test_line_kept_when_only_comparative_nonzero(self, ledger, report_for):
        ledger.transfer(date(2024, 2, 5), "1000", "1100", "3000")
        report = report_for(ledger).balance_sheet(ledger.id, FEB_29, comparative_date=JAN_31)
        receivable = next(
            ln for ln in report.section(SectionKey.CURRENT_ASSETS).lines
            if ln.account_number == "1100"
        )
        assert receivable.current_amount.is_zero
        assert receivable.comparison.comparative_amount == _usd("3000")
        assert receivable.comparison.variance_percentage == -100

    def test_zero_comparative_has_no_percentage(self, ledger, report_for):
        report = report_for(ledger).balance_sheet(
            ledger.id, JAN_31, comparative_date=date(2023, 12, 31),
        )
        cash = report.section(SectionKey.CURRENT_ASSETS).lines[0]
        assert cash.comparison.comparative_amount.is_zero
        assert cash.comparison.variance_percentage is None

    def test_no_comparative_by_default(self, ledger, report_for):
        report = report_for(ledger).balance_sheet(ledger.id, JAN_31)
        assert report.comparative_totals is None
        assert all(ln.comparison is None for ln in report.summary)
