import json
from datetime import date
from decimal import Decimal

import pytest

from modulos.fluxo_caixa.categorias import create_category
from modulos.fluxo_caixa.dre import (
    IncomeStatement,
    assemble_statement,
    classify_margin,
    compute_income_statement,
    compute_indicators,
    monthly_evolution,
    month_end,
    shift_month,
)
from modulos.fluxo_caixa.erros import InvalidData, UserNotFound
from modulos.fluxo_caixa.lancamentos import EntryRow


def row(amount, name, subgroup=None):
    return EntryRow(amount=Decimal(amount), category_name=name, dre_subgroup=subgroup)


class TestAssembleStatement:

    def test_empty_statement_is_all_zero(self):
        statement = assemble_statement([], [])
        indicators = compute_indicators(statement)

        assert statement == IncomeStatement()
        assert statement.net_profit == 0
        assert indicators.to_dict() == {"gross_margin": 0.0, "operating_margin": 0.0, "net_margin": 0.0}

    def test_every_line_lands_in_its_bucket(self):
        expenses = [
            row("10", "Impostos", "IMPOSTO"),
            row("20", "Fornecedores", "FORNECEDORES"),
            row("30", "Serviços De Terceiros", "SERVICOS_TERCEIROS"),
            row("40", "Fretes", "FRETES"),
            row("50", "Despesas Com Salario", "SALARIOS"),
            row("5", "Contador", "CONTADOR_OUTROS"),
            row("7", "Retirada De Sócio", "PRO_LABORE"),
            row("60", "Empréstimo", "EMPRESTIMOS"),
            row("8", "Juros", "JUROS_TAXAS"),
        ]
        statement = assemble_statement([row("1000", "Pix", "RECEITA")], expenses)

        assert statement.deductions.taxes == Decimal("10")
        assert statement.cost_of_services.total == Decimal("90")
        assert statement.operating_expenses.salaries == Decimal("50")
        assert statement.operating_expenses.total == Decimal("62")
        assert statement.financial_expenses.loans == Decimal("60")
        assert statement.interest_paid == Decimal("8")
        assert statement.net_profit == Decimal("1000") - sum(r.amount for r in expenses)

    def test_identities_hold(self):
        statement = assemble_statement(
            [row("1500.55", "Pix"), row("320.10", "Boletos")],
            [
                row("99.99", "Impostos"),
                row("410.00", "Fornecedores"),
                row("123.45", "Despesa Oficina"),
                row("12.00", "Tarifa Bancária"),
                row("77.77", "Aluguel"),
            ],
        )

        assert statement.net_revenue == statement.gross_revenue - statement.deductions.total
        assert statement.gross_profit == statement.net_revenue - statement.cost_of_services.total
        assert statement.operating_result == statement.gross_profit - statement.operating_expenses.total
        assert statement.net_profit == statement.operating_result - statement.financial_expenses.total
        assert statement.interest_paid == statement.financial_expenses.interest_and_fees

    def test_untagged_rows_are_classified_by_name(self):
        statement = assemble_statement([], [row("15", "juros do cartão"), row("5", "impostos")])

        assert statement.financial_expenses.interest_and_fees == Decimal("15")
        assert statement.deductions.taxes == Decimal("5")

    def test_unclassified_expense_does_not_reduce_profit(self):
        statement = assemble_statement([row("1000", "Pix")], [row("300", "Aluguel", "OUTROS")])

        assert statement.unclassified_expenses == Decimal("300")
        assert statement.net_profit == Decimal("1000")
        assert statement.to_dict()["unclassified_expenses"] == 300.0

    def test_unknown_stored_tag_is_unclassified(self):
        statement = assemble_statement([], [row("12", "Legado", "SUBGRUPO_ANTIGO")])
        assert statement.unclassified_expenses == Decimal("12")


class TestIndicators:

    def test_margins_are_rounded_half_up(self):
        statement = assemble_statement([row("300", "Pix")], [row("100", "Fornecedores")])
        indicators = compute_indicators(statement)

        # 200 / 300 = 66.666...
        assert indicators.gross_margin == Decimal("66.67")
        assert indicators.net_margin == Decimal("66.67")

    def test_zero_net_revenue_gives_zero_margins(self):
        statement = assemble_statement([row("100", "Pix")], [row("100", "Impostos"), row("50", "Fornecedores")])
        indicators = compute_indicators(statement)

        assert statement.net_revenue == 0
        assert statement.net_profit == Decimal("-50")
        assert indicators.gross_margin == 0
        assert indicators.net_margin == 0

    def test_negative_margin(self):
        statement = assemble_statement([row("100", "Pix")], [row("150", "Fornecedores")])
        assert compute_indicators(statement).net_margin == Decimal("-50.00")

    @pytest.mark.parametrize("value, label", [
        (87.5, "Excelente"),
        (30, "Excelente"),
        (29.99, "Muito Bom"),
        (10, "Bom"),
        (0, "Regular"),
        (-0.01, "Negativo"),
    ])
    def test_classify_margin(self, value, label):
        assert classify_margin(value) == label


def test_shift_month_and_month_end():
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2023, 12, 1) == (2024, 1)
    assert shift_month(2024, 3, -14) == (2023, 1)
    assert month_end(2024, 2) == date(2024, 2, 29)
    assert month_end(2023, 12) == date(2023, 12, 31)


class TestComputeIncomeStatement:

    def test_reference_scenario(self, user, add_entry):
        add_entry("income", "1000", "Pix", date(2024, 3, 10))
        add_entry("expense", "200", "Impostos", date(2024, 3, 12))
        add_entry("expense", "100", "Fornecedores", date(2024, 3, 15))

        statement = compute_income_statement(user.id, "2024-03-01", "2024-03-31")
        indicators = compute_indicators(statement)

        assert statement.gross_revenue == Decimal("1000")
        assert statement.deductions.total == Decimal("200")
        assert statement.net_revenue == Decimal("800")
        assert statement.cost_of_services.total == Decimal("100")
        assert statement.gross_profit == Decimal("700")
        assert statement.operating_result == Decimal("700")
        assert statement.net_profit == Decimal("700")
        assert indicators.gross_margin == Decimal("87.50")
        assert indicators.operating_margin == Decimal("87.50")
        assert indicators.net_margin == Decimal("87.50")

    def test_range_without_entries(self, user, add_entry):
        add_entry("income", "1000", "Pix", date(2024, 3, 10))

        statement = compute_income_statement(user.id, "2024-04-01", "2024-04-30")

        assert statement == IncomeStatement()
        assert compute_indicators(statement).gross_margin == 0

    def test_boundaries_are_inclusive(self, user, add_entry):
        add_entry("income", "10", "Pix", date(2024, 2, 29))
        add_entry("income", "100", "Pix", date(2024, 3, 1))
        add_entry("income", "1000", "Pix", date(2024, 3, 31))
        add_entry("income", "10000", "Pix", date(2024, 4, 1))

        statement = compute_income_statement(user.id, date(2024, 3, 1), date(2024, 3, 31))
        assert statement.gross_revenue == Decimal("1100")

    def test_only_paid_entries_count(self, user, add_entry):
        add_entry("income", "500", "Pix", status="paid")
        add_entry("income", "70", "Pix", status="pending")
        add_entry("expense", "30", "Fornecedores", status="cancelled")

        statement = compute_income_statement(user.id, "2024-03-01", "2024-03-31")

        assert statement.gross_revenue == Decimal("500")
        assert statement.cost_of_services.total == 0

    def test_other_users_entries_are_ignored(self, user, other_user, add_entry):
        add_entry("income", "500", "Pix")
        add_entry("income", "900", "Pix", user_id=other_user.id)

        statement = compute_income_statement(user.id, "2024-03-01", "2024-03-31")
        assert statement.gross_revenue == Decimal("500")

    def test_uncategorized_name_is_unclassified(self, user, add_entry):
        add_entry("income", "1000", "Pix")
        add_entry("expense", "300", "Aluguel")

        statement = compute_income_statement(user.id, "2024-03-01", "2024-03-31")

        assert statement.unclassified_expenses == Decimal("300")
        assert statement.operating_expenses.total == 0
        assert statement.net_profit == Decimal("1000")

    def test_tagged_category_matches_entry_typed_in_lowercase(self, user, add_entry):
        create_category(user.id, "expense", "aluguel do galpão", dre_subgroup="DESPESAS_OFICINA")
        add_entry("expense", "300", "aluguel do galpão")

        statement = compute_income_statement(user.id, "2024-03-01", "2024-03-31")

        assert statement.operating_expenses.workshop_expenses == Decimal("300")
        assert statement.unclassified_expenses == 0

    def test_category_tag_overrides_name(self, user, add_entry):
        create_category(user.id, "expense", "Aluguel", dre_subgroup="CONTADOR_OUTROS")
        add_entry("income", "1000", "Pix")
        add_entry("expense", "300", "Aluguel")

        statement = compute_income_statement(user.id, "2024-03-01", "2024-03-31")

        assert statement.operating_expenses.accountant_other == Decimal("300")
        assert statement.unclassified_expenses == 0
        assert statement.net_profit == Decimal("700")

    def test_is_idempotent(self, user, add_entry):
        add_entry("income", "1234.56", "Pix")
        add_entry("expense", "78.90", "Juros")

        first = compute_income_statement(user.id, "2024-03-01", "2024-03-31")
        second = compute_income_statement(user.id, "2024-03-01", "2024-03-31")

        assert first == second
        assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)

    def test_unknown_user(self, app):
        with pytest.raises(UserNotFound):
            compute_income_statement(999, "2024-03-01", "2024-03-31")


class TestMonthlyEvolution:

    def test_dense_chronological_window(self, user, add_entry):
        add_entry("income", "100", "Pix", date(2023, 10, 1))
        add_entry("income", "200", "Pix", date(2024, 3, 31))
        add_entry("expense", "50", "Fornecedores", date(2024, 3, 2))
        add_entry("expense", "999", "Fornecedores", date(2023, 9, 30))
        add_entry("income", "999", "Pix", date(2024, 4, 1))
        add_entry("income", "999", "Pix", date(2024, 1, 15), status="pending")

        items = monthly_evolution(user.id, 6, reference=date(2024, 3, 15))

        assert [item.key for item in items] == [
            "2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03",
        ]
        assert items[0].income == Decimal("100")
        assert items[3].income == 0
        assert items[-1].to_dict() == {
            "month": 3,
            "year": 2024,
            "income": 200.0,
            "expense": 50.0,
            "profit": 150.0,
        }

    def test_single_month(self, user):
        items = monthly_evolution(user.id, 1, reference="2024-01-20")
        assert [(i.year, i.month) for i in items] == [(2024, 1)]

    def test_window_ends_in_current_month_by_default(self, user, add_entry):
        today = date.today()
        first_year, first_month = shift_month(today.year, today.month, -5)
        add_entry("income", "40", "Pix", today)
        add_entry("expense", "15", "Fornecedores", date(first_year, first_month, 1))

        items = monthly_evolution(user.id)

        assert len(items) == 6
        assert (items[-1].year, items[-1].month) == (today.year, today.month)
        assert (items[0].year, items[0].month) == (first_year, first_month)
        assert items[-1].income == Decimal("40")
        assert items[0].expense == Decimal("15")

    def test_months_must_be_positive(self, user):
        with pytest.raises(InvalidData):
            monthly_evolution(user.id, 0)
