"""
Motor da DRE
============

Recebe os lançamentos pagos de um usuário em um intervalo fechado e monta o
Demonstrativo de Resultado do Exercício:

    receita bruta
    (-) deduções (impostos)
    = receita líquida
    (-) custo dos serviços (fornecedores, serviços de terceiros, fretes)
    = lucro bruto
    (-) despesas operacionais (nove linhas)
    = resultado operacional
    (-) despesas financeiras (empréstimos, juros/taxas)
    = lucro líquido

Despesas cuja categoria não se encaixa em nenhuma linha aparecem em
``unclassified_expenses`` e não entram em nenhum subtotal.

Todas as somas são feitas em ``Decimal``; o arredondamento acontece apenas no
cálculo das margens percentuais.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from .erros import InvalidData
from .lancamentos import list_paid_amounts, list_paid_entries, parse_date
from .taxonomia import SUBGROUP_GROUPS, classify
from .usuarios import get_user

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
PERCENT = Decimal("0.01")
DEFAULT_EVOLUTION_MONTHS = 6


def _money(value: Decimal) -> float:
    return float(value)


@dataclass(frozen=True)
class Deductions:
    taxes: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.taxes

    def to_dict(self) -> dict:
        return {"taxes": _money(self.taxes), "total": _money(self.total)}


@dataclass(frozen=True)
class CostOfServices:
    suppliers: Decimal = ZERO
    third_party_services: Decimal = ZERO
    freight: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.suppliers + self.third_party_services + self.freight

    def to_dict(self) -> dict:
        return {
            "suppliers": _money(self.suppliers),
            "third_party_services": _money(self.third_party_services),
            "freight": _money(self.freight),
            "total": _money(self.total),
        }


@dataclass(frozen=True)
class OperatingExpenses:
    salaries: Decimal = ZERO
    payroll_taxes: Decimal = ZERO
    personnel_expenses: Decimal = ZERO
    accountant_other: Decimal = ZERO
    utilities: Decimal = ZERO
    internet_phone: Decimal = ZERO
    workshop_expenses: Decimal = ZERO
    personal_expenses: Decimal = ZERO
    owner_draw: Decimal = ZERO

    _FIELDS = (
        "salaries",
        "payroll_taxes",
        "personnel_expenses",
        "accountant_other",
        "utilities",
        "internet_phone",
        "workshop_expenses",
        "personal_expenses",
        "owner_draw",
    )

    @property
    def total(self) -> Decimal:
        return sum((getattr(self, name) for name in self._FIELDS), ZERO)

    def to_dict(self) -> dict:
        data = {name: _money(getattr(self, name)) for name in self._FIELDS}
        data["total"] = _money(self.total)
        return data


@dataclass(frozen=True)
class FinancialExpenses:
    loans: Decimal = ZERO
    interest_and_fees: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.loans + self.interest_and_fees

    def to_dict(self) -> dict:
        return {
            "loans": _money(self.loans),
            "interest_and_fees": _money(self.interest_and_fees),
            "total": _money(self.total),
        }


@dataclass(frozen=True)
class IncomeStatement:
    gross_revenue: Decimal = ZERO
    deductions: Deductions = field(default_factory=Deductions)
    cost_of_services: CostOfServices = field(default_factory=CostOfServices)
    operating_expenses: OperatingExpenses = field(default_factory=OperatingExpenses)
    financial_expenses: FinancialExpenses = field(default_factory=FinancialExpenses)
    unclassified_expenses: Decimal = ZERO

    @property
    def net_revenue(self) -> Decimal:
        return self.gross_revenue - self.deductions.total

    @property
    def gross_profit(self) -> Decimal:
        return self.net_revenue - self.cost_of_services.total

    @property
    def operating_result(self) -> Decimal:
        return self.gross_profit - self.operating_expenses.total

    @property
    def interest_paid(self) -> Decimal:
        return self.financial_expenses.interest_and_fees

    @property
    def net_profit(self) -> Decimal:
        return self.operating_result - self.financial_expenses.total

    def to_dict(self) -> dict:
        return {
            "gross_revenue": _money(self.gross_revenue),
            "deductions": self.deductions.to_dict(),
            "net_revenue": _money(self.net_revenue),
            "cost_of_services": self.cost_of_services.to_dict(),
            "gross_profit": _money(self.gross_profit),
            "operating_expenses": self.operating_expenses.to_dict(),
            "operating_result": _money(self.operating_result),
            "financial_expenses": self.financial_expenses.to_dict(),
            "interest_paid": _money(self.interest_paid),
            "net_profit": _money(self.net_profit),
            "unclassified_expenses": _money(self.unclassified_expenses),
        }


@dataclass(frozen=True)
class Indicators:
    gross_margin: Decimal = ZERO
    operating_margin: Decimal = ZERO
    net_margin: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "gross_margin": float(self.gross_margin),
            "operating_margin": float(self.operating_margin),
            "net_margin": float(self.net_margin),
        }


@dataclass(frozen=True)
class MonthlyEvolutionItem:
    year: int
    month: int
    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def profit(self) -> Decimal:
        return self.income - self.expense

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "year": self.year,
            "income": _money(self.income),
            "expense": _money(self.expense),
            "profit": _money(self.profit),
        }


def row_subgroup(row) -> str:
    """Linha da DRE de uma despesa: a tag da categoria ou, sem categoria, o nome."""
    subgroup = row.dre_subgroup
    if subgroup is None:
        subgroup = classify("expense", row.category_name)[1]
    if subgroup not in SUBGROUP_GROUPS:
        return "OUTROS"
    return subgroup


def aggregate(rows) -> dict[str, Decimal]:
    """Soma os valores por subgrupo. Todo subgrupo aparece, mesmo zerado."""
    tagged = [(row_subgroup(row), row.amount) for row in rows]
    return {
        subgroup: sum((amount for tag, amount in tagged if tag == subgroup), ZERO)
        for subgroup in SUBGROUP_GROUPS
    }


def assemble_statement(income_rows, expense_rows) -> IncomeStatement:
    buckets = aggregate(expense_rows)
    return IncomeStatement(
        gross_revenue=sum((row.amount for row in income_rows), ZERO),
        deductions=Deductions(taxes=buckets["IMPOSTO"]),
        cost_of_services=CostOfServices(
            suppliers=buckets["FORNECEDORES"],
            third_party_services=buckets["SERVICOS_TERCEIROS"],
            freight=buckets["FRETES"],
        ),
        operating_expenses=OperatingExpenses(
            salaries=buckets["SALARIOS"],
            payroll_taxes=buckets["IMPOSTO_SALARIOS"],
            personnel_expenses=buckets["DESPESAS_PESSOAL"],
            accountant_other=buckets["CONTADOR_OUTROS"],
            utilities=buckets["AGUA_LUZ"],
            internet_phone=buckets["INTERNET_TELEFONE"],
            workshop_expenses=buckets["DESPESAS_OFICINA"],
            personal_expenses=buckets["DESPESAS_PESSOAIS"],
            owner_draw=buckets["PRO_LABORE"],
        ),
        financial_expenses=FinancialExpenses(
            loans=buckets["EMPRESTIMOS"],
            interest_and_fees=buckets["JUROS_TAXAS"],
        ),
        unclassified_expenses=buckets["OUTROS"],
    )


def _margin(value: Decimal, net_revenue: Decimal) -> Decimal:
    if net_revenue == 0:
        return ZERO
    return (value / net_revenue * 100).quantize(PERCENT, rounding=ROUND_HALF_UP)


def compute_indicators(statement: IncomeStatement) -> Indicators:
    net_revenue = statement.net_revenue
    return Indicators(
        gross_margin=_margin(statement.gross_profit, net_revenue),
        operating_margin=_margin(statement.operating_result, net_revenue),
        net_margin=_margin(statement.net_profit, net_revenue),
    )


def compute_income_statement(user_id: int, start, end) -> IncomeStatement:
    """DRE de um usuário no intervalo fechado ``[start, end]``.

    Considera apenas lançamentos pagos. ``start <= end`` é responsabilidade
    de quem chama.
    """
    get_user(user_id)
    start, end = parse_date(start, "start"), parse_date(end, "end")

    income_rows = list_paid_entries(user_id, "income", start, end)
    expense_rows = list_paid_entries(user_id, "expense", start, end)

    statement = assemble_statement(income_rows, expense_rows)
    logger.debug(
        f"DRE user={user_id} {start}..{end}: {len(income_rows)} receitas, "
        f"{len(expense_rows)} despesas, lucro={statement.net_profit}"
    )
    return statement


def shift_month(y: int, m: int, delta: int) -> tuple[int, int]:
    total = (y * 12) + (m - 1) + int(delta)
    return total // 12, (total % 12) + 1


def month_end(y: int, m: int) -> date:
    ny, nm = shift_month(y, m, 1)
    return date.fromordinal(date(ny, nm, 1).toordinal() - 1)


def monthly_evolution(user_id: int, months: int = DEFAULT_EVOLUTION_MONTHS, reference=None) -> list[MonthlyEvolutionItem]:
    """Receitas e despesas pagas dos últimos ``months`` meses civis.

    A janela termina no mês de ``reference`` (por padrão, hoje), e não no
    período do relatório. Meses sem lançamentos aparecem zerados.
    """
    if months < 1:
        raise InvalidData("months deve ser >= 1")
    get_user(user_id)

    reference = parse_date(reference, "reference") if reference is not None else date.today()
    first_year, first_month = shift_month(reference.year, reference.month, -(months - 1))
    start = date(first_year, first_month, 1)
    end = month_end(reference.year, reference.month)

    keys = []
    for offset in range(months):
        y, m = shift_month(first_year, first_month, offset)
        keys.append((y, m))

    income = {key: ZERO for key in keys}
    expense = {key: ZERO for key in keys}
    for entry_date, amount in list_paid_amounts(user_id, "income", start, end):
        income[(entry_date.year, entry_date.month)] += amount
    for entry_date, amount in list_paid_amounts(user_id, "expense", start, end):
        expense[(entry_date.year, entry_date.month)] += amount

    return [
        MonthlyEvolutionItem(year=y, month=m, income=income[(y, m)], expense=expense[(y, m)])
        for y, m in keys
    ]


def classify_margin(value) -> str:
    """Faixa qualitativa de uma margem percentual."""
    value = Decimal(str(value))
    if value >= 30:
        return "Excelente"
    if value >= 20:
        return "Muito Bom"
    if value >= 10:
        return "Bom"
    if value >= 0:
        return "Regular"
    return "Negativo"
