"""
Relatório da DRE
================

Traduz os períodos pré-definidos da tela de relatório em datas e junta
DRE, indicadores, evolução mensal e totais por categoria em um único
dicionário serializável em JSON.
"""

import logging
from datetime import date

from .dre import (
    DEFAULT_EVOLUTION_MONTHS,
    classify_margin,
    compute_income_statement,
    compute_indicators,
    month_end,
    monthly_evolution,
    shift_month,
)
from .erros import InvalidData, InvalidRange
from .lancamentos import category_totals, parse_date
from .taxonomia import classify

logger = logging.getLogger(__name__)

PERIOD_KINDS = ("mes-atual", "trimestre", "ano", "personalizado")
TOP_CATEGORIES = 5


def resolve_period(kind: str = "mes-atual", start=None, end=None, today=None) -> tuple[date, date]:
    """Converte um período pré-definido em ``(data_inicial, data_final)``.

    ``personalizado`` usa as datas informadas; sem elas, cai no mês atual.
    """
    if kind not in PERIOD_KINDS:
        raise InvalidData(f"Período inválido: {kind}")

    today = parse_date(today, "today") if today is not None else date.today()

    if kind == "personalizado" and start and end:
        start, end = parse_date(start, "start"), parse_date(end, "end")
        if start > end:
            raise InvalidRange()
        return start, end

    if kind == "trimestre":
        y, m = shift_month(today.year, today.month, -2)
        return date(y, m, 1), month_end(today.year, today.month)

    if kind == "ano":
        return date(today.year, 1, 1), date(today.year, 12, 31)

    return date(today.year, today.month, 1), month_end(today.year, today.month)


def _breakdown(totals, entry_type: str) -> list[dict]:
    items = []
    for item in totals:
        group = item.dre_group or classify(entry_type, item.category_name)[0]
        items.append({
            "category": item.category_name,
            "total": float(item.total),
            "count": item.count,
            "dre_group": group,
        })
    return items


def _top(totals) -> list[dict]:
    return [
        {"category": item.category_name, "total": float(item.total)}
        for item in totals[:TOP_CATEGORIES]
    ]


def build_report(
    user_id: int,
    kind: str = "mes-atual",
    start=None,
    end=None,
    today=None,
    evolution_months: int = DEFAULT_EVOLUTION_MONTHS,
) -> dict:
    """Relatório completo: DRE, indicadores, evolução mensal e categorias.

    A evolução mensal é sempre ancorada em ``today``, independente do período.
    """
    today = parse_date(today, "today") if today is not None else date.today()
    period_start, period_end = resolve_period(kind, start, end, today)

    statement = compute_income_statement(user_id, period_start, period_end)
    indicators = compute_indicators(statement)
    evolution = monthly_evolution(user_id, evolution_months, reference=today)

    income_totals = category_totals(user_id, "income", period_start, period_end)
    expense_totals = category_totals(user_id, "expense", period_start, period_end)

    logger.info(f"Relatório gerado: user={user_id} {kind} {period_start}..{period_end}")

    return {
        "period": {
            "kind": kind,
            "start": period_start.isoformat(),
            "end": period_end.isoformat(),
        },
        "statement": statement.to_dict(),
        "indicators": indicators.to_dict(),
        "margin_ratings": {
            "gross_margin": classify_margin(indicators.gross_margin),
            "operating_margin": classify_margin(indicators.operating_margin),
            "net_margin": classify_margin(indicators.net_margin),
        },
        "monthly_evolution": [item.to_dict() for item in evolution],
        "top_income": _top(income_totals),
        "top_expenses": _top(expense_totals),
        "breakdown": {
            "income": _breakdown(income_totals, "income"),
            "expense": _breakdown(expense_totals, "expense"),
        },
    }
