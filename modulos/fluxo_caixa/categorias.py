"""
Categorias
==========

CRUD das categorias de receitas e despesas. O nome é normalizado e as tags
da DRE são resolvidas no momento da criação ou renomeação.
"""

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Category, FinancialEntry, ENTRY_TYPES

from .erros import CategoryAlreadyExists, CategoryInUse, CategoryNotFound, InvalidData
from .taxonomia import DEFAULT_CATEGORIES, normalize_category_name, resolve_tags
from .usuarios import get_user

logger = logging.getLogger(__name__)


def _check_type(category_type: str | None) -> str:
    if category_type not in ENTRY_TYPES:
        raise InvalidData(f"Natureza inválida: {category_type}")
    return category_type


def _find_by_name(user_id: int, category_type: str, name: str):
    return Category.query.filter_by(user_id=user_id, type=category_type, name=name).first()


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise CategoryNotFound()
    return category


def list_categories(user_id: int, category_type: str | None = None, include_inactive: bool = False) -> list[Category]:
    query = Category.query.filter(Category.user_id == user_id)
    if category_type:
        query = query.filter(Category.type == _check_type(category_type))
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name.asc()).all()


def create_category(
    user_id: int,
    category_type: str,
    name: str | None,
    dre_group: str | None = None,
    dre_subgroup: str | None = None,
) -> Category:
    """Cria uma categoria com o nome normalizado e as tags da DRE resolvidas."""
    get_user(user_id)
    _check_type(category_type)

    normalized = normalize_category_name(name)
    if not normalized:
        raise InvalidData("Nome da categoria não pode estar vazio")

    if _find_by_name(user_id, category_type, normalized):
        logger.warning(f"Categoria duplicada recusada: user={user_id} {category_type}/{normalized}")
        raise CategoryAlreadyExists()

    group, subgroup = resolve_tags(category_type, (name, normalized), dre_group, dre_subgroup)

    category = Category(
        user_id=user_id,
        type=category_type,
        name=normalized,
        is_active=True,
        dre_group=group,
        dre_subgroup=subgroup,
    )
    db.session.add(category)
    _commit()

    logger.info(f"Categoria criada: id={category.id} {category_type}/{normalized} -> {group}/{subgroup}")
    return category


def update_category(
    category_id: int,
    name: str | None = None,
    is_active: bool | None = None,
    dre_group: str | None = None,
    dre_subgroup: str | None = None,
) -> Category:
    if name is None and is_active is None and dre_group is None and dre_subgroup is None:
        raise InvalidData("Pelo menos um campo deve ser fornecido para atualização")

    category = get_category(category_id)

    if name is not None:
        normalized = normalize_category_name(name)
        if not normalized:
            raise InvalidData("Nome da categoria não pode estar vazio")

        duplicate = _find_by_name(category.user_id, category.type, normalized)
        if duplicate is not None and duplicate.id != category.id:
            raise CategoryAlreadyExists()

        category.name = normalized
        if dre_group is None and dre_subgroup is None:
            category.dre_group, category.dre_subgroup = resolve_tags(category.type, (name, normalized))

    if dre_group is not None or dre_subgroup is not None:
        category.dre_group, category.dre_subgroup = resolve_tags(
            category.type, category.name, dre_group, dre_subgroup
        )

    if is_active is not None:
        category.is_active = bool(is_active)

    _commit()
    logger.info(f"Categoria atualizada: id={category.id} -> {category.name} ({category.dre_subgroup})")
    return category


def delete_category(category_id: int) -> Category:
    """Remove a categoria; categorias usadas em lançamentos não são apagadas."""
    category = get_category(category_id)

    in_use = (
        FinancialEntry.query.filter(
            FinancialEntry.user_id == category.user_id,
            or_(
                FinancialEntry.category == category.name,
                func.lower(FinancialEntry.category) == category.name.lower(),
            ),
        )
        .limit(1)
        .first()
    )
    if in_use is not None:
        logger.warning(f"Categoria {category.id} em uso, exclusão recusada")
        raise CategoryInUse()

    db.session.delete(category)
    _commit()
    logger.info(f"Categoria removida: id={category_id}")
    return category


def ensure_default_categories(user_id: int, commit: bool = True) -> int:
    """Cria as categorias padrão que ainda não existem. Retorna quantas criou."""
    created = 0
    for category_type, names in DEFAULT_CATEGORIES.items():
        for raw_name in names:
            normalized = normalize_category_name(raw_name)
            if _find_by_name(user_id, category_type, normalized):
                continue
            group, subgroup = resolve_tags(category_type, (raw_name, normalized))
            db.session.add(Category(
                user_id=user_id,
                type=category_type,
                name=normalized,
                is_active=True,
                dre_group=group,
                dre_subgroup=subgroup,
            ))
            created += 1

    if commit:
        _commit()
    else:
        db.session.flush()

    logger.debug(f"Categorias padrão para user={user_id}: {created} criadas")
    return created
