import pytest

from modulos.fluxo_caixa.categorias import (
    create_category,
    delete_category,
    ensure_default_categories,
    get_category,
    list_categories,
    update_category,
)
from modulos.fluxo_caixa.erros import (
    CategoryAlreadyExists,
    CategoryInUse,
    CategoryNotFound,
    InvalidData,
    UserNotFound,
)
from modulos.fluxo_caixa.taxonomia import DEFAULT_CATEGORIES


def _by_name(categories):
    return {c.name: c for c in categories}


def test_new_user_gets_default_categories(user):
    expenses = list_categories(user.id, "expense")
    incomes = list_categories(user.id, "income")

    assert len(expenses) == len(DEFAULT_CATEGORIES["expense"])
    assert len(incomes) == len(DEFAULT_CATEGORIES["income"])

    tags = {c.name: c.dre_subgroup for c in expenses}
    assert tags["Impostos"] == "IMPOSTO"
    assert tags["Fornecedores"] == "FORNECEDORES"
    assert tags["Juros"] == "JUROS_TAXAS"
    assert tags["Retirada De Sócio"] == "PRO_LABORE"
    assert tags["Despesa Água/luz"] == "AGUA_LUZ"
    assert tags["Pix"] == "OUTROS"
    assert all(c.dre_group == "RECEITA_BRUTA" for c in incomes)


def test_ensure_default_categories_is_idempotent(user):
    assert ensure_default_categories(user.id) == 0


def test_list_categories_is_sorted_by_name(user):
    names = [c.name for c in list_categories(user.id, "income")]
    assert names == sorted(names)


def test_create_category_normalizes_and_tags(user):
    category = create_category(user.id, "expense", "  aluguel   do  galpão ")

    assert category.name == "Aluguel Do Galpão"
    assert category.is_active is True
    assert (category.dre_group, category.dre_subgroup) == ("OUTROS", "OUTROS")


def test_create_category_with_explicit_tags(user):
    category = create_category(user.id, "expense", "Aluguel", dre_subgroup="CONTADOR_OUTROS")
    assert category.to_dict()["dre_group"] == "DESPESA_OPERACIONAL"
    assert category.to_dict()["dre_subgroup"] == "CONTADOR_OUTROS"


def test_create_category_duplicate_is_rejected(user):
    create_category(user.id, "expense", "Aluguel do galpão")
    with pytest.raises(CategoryAlreadyExists) as exc:
        create_category(user.id, "expense", "ALUGUEL DO GALPÃO")
    assert exc.value.code == 409


def test_same_name_is_allowed_in_other_type_and_user(user, other_user):
    create_category(user.id, "expense", "Consultoria")
    create_category(user.id, "income", "Consultoria")
    create_category(other_user.id, "expense", "Consultoria")

    assert "Consultoria" in _by_name(list_categories(other_user.id, "expense"))


@pytest.mark.parametrize("category_type, name", [
    ("expense", "   "),
    ("expense", None),
    ("transfer", "Aluguel"),
])
def test_create_category_invalid_data(user, category_type, name):
    with pytest.raises(InvalidData):
        create_category(user.id, category_type, name)


def test_create_category_unknown_user(app):
    with pytest.raises(UserNotFound):
        create_category(999, "expense", "Aluguel")


def test_rename_reclassifies(user):
    category = create_category(user.id, "expense", "Diversos")
    assert category.dre_subgroup == "OUTROS"

    category = update_category(category.id, name="fretes")

    assert category.name == "Fretes"
    assert (category.dre_group, category.dre_subgroup) == ("CUSTO_SERVICO", "FRETES")


def test_rename_to_existing_name_is_rejected(user):
    category = create_category(user.id, "expense", "Diversos")
    with pytest.raises(CategoryAlreadyExists):
        update_category(category.id, name="fornecedores")


def test_update_requires_a_field(user):
    category = create_category(user.id, "expense", "Diversos")
    with pytest.raises(InvalidData):
        update_category(category.id)


def test_deactivated_category_is_hidden_by_default(user):
    category = create_category(user.id, "expense", "Diversos")
    update_category(category.id, is_active=False)

    assert "Diversos" not in _by_name(list_categories(user.id, "expense"))
    assert "Diversos" in _by_name(list_categories(user.id, "expense", include_inactive=True))


def test_delete_unused_category(user):
    category = create_category(user.id, "expense", "Diversos")
    delete_category(category.id)

    with pytest.raises(CategoryNotFound):
        get_category(category.id)


def test_delete_category_in_use_is_rejected(user, add_entry):
    category = create_category(user.id, "expense", "Aluguel")
    add_entry(category="Aluguel")

    with pytest.raises(CategoryInUse):
        delete_category(category.id)
    assert get_category(category.id).name == "Aluguel"


def test_delete_category_in_use_with_differently_typed_name(user, add_entry):
    category = create_category(user.id, "expense", "aluguel do galpão")
    add_entry(category="  ALUGUEL   do galpão ")

    with pytest.raises(CategoryInUse):
        delete_category(category.id)
