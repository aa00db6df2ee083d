"""
Lançamentos (receitas e despesas)
=================================

CRUD dos lançamentos, listagem paginada com filtros e as consultas de
lançamentos pagos consumidas pelo motor da DRE.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import and_, func
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Category, FinancialEntry, ENTRY_STATUSES, ENTRY_TYPES

from .erros import EntryNotFound, InvalidData
from .taxonomia import normalize_category_name
from .usuarios import get_user

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
MAX_PAGE_SIZE = 100

ENTRY_FIELDS = ("description", "category", "amount", "date", "status", "notes")
REQUIRED_FIELDS = ("description", "category", "amount", "date", "status")

# Valores aceitos vindos da interface em português
STATUS_ALIASES = {
    "pago": "paid",
    "recebido": "paid",
    "pendente": "pending",
    "cancelado": "cancelled",
}


@dataclass(frozen=True)
class EntryRow:
    """Linha paga já decorada com as tags da categoria (se existir)."""
    amount: Decimal
    category_name: str
    dre_group: str | None = None
    dre_subgroup: str | None = None


@dataclass(frozen=True)
class CategoryTotal:
    category_name: str
    total: Decimal
    count: int
    dre_group: str | None = None
    dre_subgroup: str | None = None


def parse_date(value, field: str = "date") -> date:
    """Aceita ``date`` ou texto ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise InvalidData(f"Data inválida em '{field}': {value!r}. Use YYYY-MM-DD.")


def parse_amount(value) -> Decimal:
    """Converte o valor (aceita vírgula decimal) para Decimal com 2 casas."""
    if isinstance(value, bool) or value is None:
        raise InvalidData("Valor inválido")
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise InvalidData(f"Valor inválido: {value!r}")
    if not amount.is_finite():
        raise InvalidData(f"Valor inválido: {value!r}")
    if amount < 0:
        raise InvalidData("O valor não pode ser negativo")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_status(value) -> str:
    status = str(value or "").strip().lower()
    status = STATUS_ALIASES.get(status, status)
    if status not in ENTRY_STATUSES:
        raise InvalidData(f"Status inválido: {value!r}")
    return status


def _check_type(entry_type: str) -> str:
    if entry_type not in ENTRY_TYPES:
        raise InvalidData(f"Tipo de lançamento inválido: {entry_type}")
    return entry_type


def _clean_payload(data: dict, partial: bool) -> dict:
    unknown = set(data) - set(ENTRY_FIELDS)
    if unknown:
        raise InvalidData(f"Campos não reconhecidos: {', '.join(sorted(unknown))}")

    if not partial:
        missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
        if missing:
            raise InvalidData(f"Campos obrigatórios: {', '.join(missing)}")

    values = {}
    for key in ("description", "category"):
        if key in data:
            text = str(data[key] or "").strip()
            if not text:
                raise InvalidData(f"O campo '{key}' não pode estar vazio")
            values[key] = text
    # Mesmo formato do nome gravado em Category, usado no join e na exclusão
    if "category" in values:
        values["category"] = normalize_category_name(values["category"])
    if "amount" in data:
        values["amount"] = parse_amount(data["amount"])
    if "date" in data:
        values["entry_date"] = parse_date(data["date"])
    if "status" in data:
        values["status"] = parse_status(data["status"])
    if "notes" in data:
        values["notes"] = (str(data["notes"]).strip() or None) if data["notes"] is not None else None
    return values


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def create_entry(user_id: int, entry_type: str, data: dict) -> FinancialEntry:
    get_user(user_id)
    _check_type(entry_type)
    values = _clean_payload(data, partial=False)

    entry = FinancialEntry(user_id=user_id, type=entry_type, **values)
    db.session.add(entry)
    _commit()

    logger.info(f"Lançamento criado: id={entry.id} user={user_id} {entry_type} R$ {entry.amount}")
    return entry


def get_entry(entry_id: int) -> FinancialEntry:
    entry = db.session.get(FinancialEntry, entry_id)
    if entry is None:
        raise EntryNotFound()
    return entry


def update_entry(entry_id: int, data: dict) -> FinancialEntry:
    entry = get_entry(entry_id)
    values = _clean_payload(data, partial=True)
    if not values:
        raise InvalidData("Nenhum campo para atualizar")

    for key, value in values.items():
        setattr(entry, key, value)
    _commit()

    logger.info(f"Lançamento atualizado: id={entry.id} campos={sorted(values)}")
    return entry


def delete_entry(entry_id: int) -> FinancialEntry:
    entry = get_entry(entry_id)
    db.session.delete(entry)
    _commit()
    logger.info(f"Lançamento removido: id={entry_id}")
    return entry


def list_entries(
    user_id: int,
    entry_type: str,
    category: str | None = None,
    status: str | None = None,
    text: str | None = None,
    start=None,
    end=None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[FinancialEntry], int]:
    """Listagem paginada, da data mais recente para a mais antiga.

    Retorna ``(linhas_da_pagina, total_de_linhas)``.
    """
    _check_type(entry_type)
    if page < 1:
        raise InvalidData("page deve ser >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidData(f"pageSize deve estar entre 1 e {MAX_PAGE_SIZE}")

    query = FinancialEntry.query.filter(
        FinancialEntry.user_id == user_id,
        FinancialEntry.type == entry_type,
    )

    category = (category or "").strip()
    if category:
        query = query.filter(func.lower(FinancialEntry.category).like(f"%{category.lower()}%"))

    if status:
        query = query.filter(FinancialEntry.status == parse_status(status))

    text = (text or "").strip()
    if text:
        query = query.filter(func.lower(FinancialEntry.description).like(f"%{text.lower()}%"))

    if start:
        query = query.filter(FinancialEntry.entry_date >= parse_date(start, "start"))
    if end:
        query = query.filter(FinancialEntry.entry_date <= parse_date(end, "end"))

    total = query.count()
    rows = (
        query.order_by(FinancialEntry.entry_date.desc(), FinancialEntry.id.desc())
        .limit(page_size)
        .offset((page - 1) * page_size)
        .all()
    )
    return rows, total


def _paid_filters(user_id: int, entry_type: str, start, end):
    return (
        FinancialEntry.user_id == user_id,
        FinancialEntry.type == _check_type(entry_type),
        FinancialEntry.status == "paid",
        FinancialEntry.entry_date >= parse_date(start, "start"),
        FinancialEntry.entry_date <= parse_date(end, "end"),
    )


def _category_join():
    return and_(
        Category.user_id == FinancialEntry.user_id,
        Category.type == FinancialEntry.type,
        Category.name == FinancialEntry.category,
    )


def list_paid_entries(user_id: int, entry_type: str, start, end) -> list[EntryRow]:
    """Lançamentos pagos no intervalo fechado ``[start, end]``.

    A categoria é um left join: lançamentos sem categoria cadastrada vêm com
    as tags ``None``.
    """
    rows = (
        db.session.query(
            FinancialEntry.amount,
            FinancialEntry.category,
            Category.dre_group,
            Category.dre_subgroup,
        )
        .outerjoin(Category, _category_join())
        .filter(*_paid_filters(user_id, entry_type, start, end))
        .order_by(FinancialEntry.id.asc())
        .all()
    )
    return [
        EntryRow(
            amount=Decimal(amount or 0),
            category_name=name,
            dre_group=group,
            dre_subgroup=subgroup,
        )
        for amount, name, group, subgroup in rows
    ]


def list_paid_amounts(user_id: int, entry_type: str, start, end) -> list[tuple[date, Decimal]]:
    """Pares ``(data, valor)`` dos lançamentos pagos no intervalo."""
    rows = (
        db.session.query(FinancialEntry.entry_date, FinancialEntry.amount)
        .filter(*_paid_filters(user_id, entry_type, start, end))
        .order_by(FinancialEntry.entry_date.asc(), FinancialEntry.id.asc())
        .all()
    )
    return [(entry_date, Decimal(amount or 0)) for entry_date, amount in rows]


def category_totals(user_id: int, entry_type: str, start, end) -> list[CategoryTotal]:
    """Totais pagos por nome de categoria, do maior para o menor."""
    total_col = func.coalesce(func.sum(FinancialEntry.amount), 0)
    rows = (
        db.session.query(
            FinancialEntry.category,
            total_col.label("total"),
            func.count(FinancialEntry.id).label("quantity"),
            func.max(Category.dre_group),
            func.max(Category.dre_subgroup),
        )
        .outerjoin(Category, _category_join())
        .filter(*_paid_filters(user_id, entry_type, start, end))
        .group_by(FinancialEntry.category)
        .all()
    )
    totals = [
        CategoryTotal(
            category_name=name,
            total=Decimal(total or 0).quantize(CENTS),
            count=int(quantity or 0),
            dre_group=group,
            dre_subgroup=subgroup,
        )
        for name, total, quantity, group, subgroup in rows
    ]
    totals.sort(key=lambda t: (-t.total, t.category_name))
    return totals
