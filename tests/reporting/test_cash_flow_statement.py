"""Cash flow statement: indirect method, activity buckets and cash reconciliation."""

from datetime import date

import pytest

from ledger_kernel.domain.accounts import AccountCategory, CashFlowCategory
from ledger_kernel.domain.values import Money
from ledger_modules.reporting.config import AccountClassification, ReportingConfig
from ledger_modules.reporting.models import LineStyle

JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)


def _usd(amount) -> Money:
    return Money.of(amount, "USD")


def _amounts(lines) -> dict:
    return {ln.account_number: ln.current_amount for ln in lines}


@pytest.fixture
def ledger(make_ledger):
    lg = make_ledger().standard_chart()
    lg.account(
        "1590", "Accumulated Depreciation", AccountCategory.FIXED_ASSET,
        cash_flow_category=CashFlowCategory.NON_CASH,
    )
    lg.account("6500", "Depreciation", AccountCategory.DEPRECIATION_AMORTIZATION)
    # Opening position from December
    lg.transfer(date(2023, 12, 1), "1000", "3000", "20000")
    # January activity
    lg.transfer(date(2024, 1, 5), "1000", "4000", "6000")
    lg.transfer(date(2024, 1, 6), "6000", "1000", "1500")
    lg.transfer(date(2024, 1, 10), "1500", "1000", "8000")
    lg.transfer(date(2024, 1, 12), "1000", "2500", "5000")
    lg.transfer(date(2024, 1, 31), "6500", "1590", "200")
    return lg


class TestCashFlowStatement:

    def test_activity_totals(self, ledger, report_for):
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        assert report.net_cash_from_operations == _usd("4500")
        assert report.net_cash_from_investing == _usd("-8000")
        assert report.net_cash_from_financing == _usd("5000")
        assert report.net_change_in_cash == _usd("1500")

    def test_cash_reconciles(self, ledger, report_for):
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        assert report.beginning_cash == _usd("20000")
        assert report.ending_cash == _usd("21500")
        assert report.cash_change_reconciles is True

    def test_operating_starts_from_net_income(self, ledger, report_for):
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        first = report.operating_activities.lines[0]
        assert report.net_income == _usd("4300")
        assert first.description == "Net Income"
        assert first.current_amount == _usd("4300")
        assert first.style == LineStyle.SUBTOTAL
        assert _amounts(report.non_cash_adjustments) == {"1590": _usd("200")}
        assert report.working_capital_changes == ()

    def test_cash_and_income_accounts_left_out(self, ledger, report_for):
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        numbers = [
            ln.account_number
            for section in (
                report.operating_activities,
                report.investing_activities,
                report.financing_activities,
            )
            for ln in section.lines
            if ln.account_number is not None
        ]
        assert "1000" not in numbers
        assert "4000" not in numbers
        assert "6500" not in numbers
        assert numbers.count("1500") == 1
        assert numbers.count("1590") == 1

    def test_cash_by_tag(self, make_ledger, report_for):
        lg = make_ledger().standard_chart("3000")
        lg.account("1205", "Petty Cash", AccountCategory.CURRENT_ASSET, tags=("cash",))
        lg.transfer(date(2024, 1, 3), "1205", "3000", "300")
        report = report_for(lg).cash_flow_statement(lg.id, JAN_1, JAN_31)
        assert report.ending_cash == _usd("300")
        assert report.net_cash_from_financing == _usd("300")
        assert report.cash_change_reconciles

    def test_custom_prefixes(self, make_ledger, report_for):
        lg = make_ledger().standard_chart("1000", "1100", "3000")
        lg.transfer(date(2024, 1, 3), "1100", "3000", "40")
        config = ReportingConfig(
            classification=AccountClassification(cash_account_prefixes=("11",)),
        )
        report = report_for(lg, config=config).cash_flow_statement(lg.id, JAN_1, JAN_31)
        assert report.ending_cash == _usd("40")

    def test_end_before_start(self, ledger, report_for):
        with pytest.raises(ValueError, match="precedes"):
            report_for(ledger).cash_flow_statement(ledger.id, JAN_31, JAN_1)


class TestDepreciationWithDefaultCategories:
    """Accumulated depreciation carries no explicit cash flow category."""

    @pytest.fixture
    def ledger(self, make_ledger):
        lg = make_ledger().standard_chart("1000", "3000")
        lg.account("1590", "Accumulated Depreciation", AccountCategory.FIXED_ASSET)
        lg.account("6500", "Depreciation", AccountCategory.DEPRECIATION_AMORTIZATION)
        lg.transfer(date(2023, 12, 1), "1000", "3000", "20000")
        lg.transfer(date(2024, 1, 31), "6500", "1590", "200")
        return lg

    def test_no_cash_moves(self, ledger, report_for):
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        assert report.beginning_cash == _usd("20000")
        assert report.ending_cash == _usd("20000")
        assert report.net_change_in_cash.is_zero
        assert report.cash_change_reconciles is True

    def test_depreciation_added_back(self, ledger, report_for):
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        assert report.net_income == _usd("-200")
        assert _amounts(report.non_cash_adjustments) == {"1590": _usd("200")}
        assert report.net_cash_from_operations.is_zero
        assert report.investing_activities.lines == ()

    def test_cash_purchase_still_investing(self, ledger, report_for):
        ledger.account("1500", "Equipment", AccountCategory.FIXED_ASSET)
        ledger.transfer(date(2024, 1, 10), "1500", "1000", "3000")
        report = report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        assert _amounts(report.investing_activities.lines) == {"1500": _usd("-3000")}
        assert report.net_change_in_cash == _usd("-3000")
        assert report.cash_change_reconciles


class TestWorkingCapital:

    def test_credit_sale_and_collection(self, make_ledger, report_for):
        lg = make_ledger().standard_chart("1000", "1100", "2000", "4000", "6000")
        lg.transfer(date(2024, 1, 4), "1100", "4000", "900")
        lg.transfer(date(2024, 1, 20), "1000", "1100", "600")
        lg.transfer(date(2024, 1, 22), "6000", "2000", "250")

        report = report_for(lg).cash_flow_statement(lg.id, JAN_1, JAN_31)
        assert report.net_income == _usd("650")
        assert _amounts(report.working_capital_changes) == {
            "1100": _usd("-300"),
            "2000": _usd("250"),
        }
        assert report.net_cash_from_operations == _usd("600")
        assert report.ending_cash == _usd("600")
        assert report.cash_change_reconciles

    def test_accrual_into_long_term_loan(self, make_ledger, report_for):
        lg = make_ledger().standard_chart("1000", "2500", "3000", "7000")
        lg.transfer(date(2023, 12, 1), "1000", "3000", "1000")
        lg.transfer(date(2024, 1, 31), "7000", "2500", "80")

        report = report_for(lg).cash_flow_statement(lg.id, JAN_1, JAN_31)
        assert _amounts(report.non_cash_adjustments) == {"2500": _usd("80")}
        assert report.financing_activities.lines == ()
        assert report.net_change_in_cash.is_zero
        assert report.cash_change_reconciles


class TestLogging:

    def test_generation_logged(self, ledger, report_for, captured_logs):
        report_for(ledger).cash_flow_statement(ledger.id, JAN_1, JAN_31)
        (record,) = [
            r for r in captured_logs() if r["message"] == "cash_flow_statement_generated"
        ]
        assert record["net_income"] == "4300"
        assert record["reconciles"] is True
