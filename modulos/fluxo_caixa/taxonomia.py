"""
Taxonomia da DRE
================

Mapeia o nome livre de uma categoria para um grupo/subgrupo fixo do
Demonstrativo de Resultado do Exercício. A classificação é feita uma única
vez, quando a categoria é criada ou renomeada, e gravada em
``Category.dre_group`` / ``Category.dre_subgroup``.
"""

import unicodedata

from .erros import InvalidData

# Grupos
RECEITA_BRUTA = "RECEITA_BRUTA"
DEDUCAO = "DEDUCAO"
CUSTO_SERVICO = "CUSTO_SERVICO"
DESPESA_OPERACIONAL = "DESPESA_OPERACIONAL"
DESPESA_FINANCEIRA = "DESPESA_FINANCEIRA"
OUTROS = "OUTROS"

DRE_GROUPS = (
    RECEITA_BRUTA,
    DEDUCAO,
    CUSTO_SERVICO,
    DESPESA_OPERACIONAL,
    DESPESA_FINANCEIRA,
    OUTROS,
)

# Subgrupo -> grupo. Cada subgrupo é uma linha do demonstrativo.
SUBGROUP_GROUPS = {
    "RECEITA": RECEITA_BRUTA,
    "IMPOSTO": DEDUCAO,
    "FORNECEDORES": CUSTO_SERVICO,
    "SERVICOS_TERCEIROS": CUSTO_SERVICO,
    "FRETES": CUSTO_SERVICO,
    "SALARIOS": DESPESA_OPERACIONAL,
    "IMPOSTO_SALARIOS": DESPESA_OPERACIONAL,
    "DESPESAS_PESSOAL": DESPESA_OPERACIONAL,
    "CONTADOR_OUTROS": DESPESA_OPERACIONAL,
    "AGUA_LUZ": DESPESA_OPERACIONAL,
    "INTERNET_TELEFONE": DESPESA_OPERACIONAL,
    "DESPESAS_OFICINA": DESPESA_OPERACIONAL,
    "DESPESAS_PESSOAIS": DESPESA_OPERACIONAL,
    "PRO_LABORE": DESPESA_OPERACIONAL,
    "EMPRESTIMOS": DESPESA_FINANCEIRA,
    "JUROS_TAXAS": DESPESA_FINANCEIRA,
    "OUTROS": OUTROS,
}

# Igualdade sem diferenciar maiúsculas/minúsculas (literais já em casefold)
_EXACT_RULES = (
    ("IMPOSTO", ("impostos", "taxes")),
    ("FORNECEDORES", ("fornecedores",)),
    ("SERVICOS_TERCEIROS", ("serviços de terceiros",)),
    ("FRETES", ("fretes",)),
    ("SALARIOS", ("despesas com salario",)),
    ("IMPOSTO_SALARIOS", ("impostos sobre salários",)),
    ("DESPESAS_PESSOAL", ("despesas com pessoal",)),
    ("CONTADOR_OUTROS", ("contador", "outros")),
    ("INTERNET_TELEFONE", ("despesa internet/telefone",)),
    ("DESPESAS_OFICINA", ("despesa oficina",)),
    ("DESPESAS_PESSOAIS", ("despesa pessoal",)),
    ("PRO_LABORE", ("retirada de sócio",)),
)

# Água/luz compara o texto exato, diferenciando maiúsculas
UTILITIES_LITERAL = "Despesa água/luz"

# Busca por trecho no nome sem acentos e em minúsculas
_CONTAINS_RULES = (
    ("EMPRESTIMOS", ("emprestimo",)),
    ("JUROS_TAXAS", ("juros", "taxa", "tarifa")),
)

DEFAULT_CATEGORIES = {
    "expense": (
        "Retirada de Sócio",
        "Pix",
        "Fornecedores",
        "Juros",
        "Impostos",
        "Despesa Pessoal",
        "Saque",
        "Despesa Oficina",
        "Contador",
        "Despesas com salario",
        "Despesa água/luz",
        "Despesa internet/telefone",
        "Outros",
    ),
    "income": (
        "Pix",
        "Cartão de Débito",
        "Cartão de Crédito",
        "Boletos",
        "Dinheiro",
        "Cheque",
        "Transferência",
        "Outros",
    ),
}


def normalize_category_name(name: str | None) -> str:
    """Remove espaços extras e coloca cada palavra com a inicial maiúscula.

    >>> normalize_category_name("  despesa   OFICINA ")
    'Despesa Oficina'
    """
    if not name:
        return ""
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.split())


def fold_name(name: str | None) -> str:
    """Minúsculas e sem acentos, usado nas regras por trecho."""
    decomposed = unicodedata.normalize("NFKD", name or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def classify(entry_type: str, name: str | None) -> tuple[str, str]:
    """Retorna ``(grupo, subgrupo)`` da DRE para uma categoria.

    Toda receita é receita bruta. Despesas passam pelas regras de igualdade,
    depois água/luz, depois as regras por trecho; o que sobrar vai para OUTROS.
    """
    if entry_type == "income":
        return RECEITA_BRUTA, "RECEITA"

    raw = (name or "").strip()
    lowered = raw.casefold()

    for subgroup, literals in _EXACT_RULES:
        if lowered in literals:
            return SUBGROUP_GROUPS[subgroup], subgroup

    if raw == UTILITIES_LITERAL:
        return DESPESA_OPERACIONAL, "AGUA_LUZ"

    folded = fold_name(raw)
    for subgroup, fragments in _CONTAINS_RULES:
        if any(fragment in folded for fragment in fragments):
            return SUBGROUP_GROUPS[subgroup], subgroup

    return OUTROS, "OUTROS"


def resolve_tags(entry_type: str, names, dre_group: str | None = None, dre_subgroup: str | None = None) -> tuple[str, str]:
    """Define as tags da DRE de uma categoria.

    Tags explícitas prevalecem (e são validadas). Sem tags, cada nome em
    ``names`` é classificado em ordem e o primeiro que não cair em OUTROS vence.
    """
    if dre_subgroup is not None:
        group = SUBGROUP_GROUPS.get(dre_subgroup)
        if group is None:
            raise InvalidData(f"Subgrupo da DRE inválido: {dre_subgroup}")
        if dre_group is not None and dre_group != group:
            raise InvalidData(f"Subgrupo {dre_subgroup} não pertence ao grupo {dre_group}")
        _check_type(entry_type, group)
        return group, dre_subgroup

    if dre_group is not None:
        if dre_group not in DRE_GROUPS:
            raise InvalidData(f"Grupo da DRE inválido: {dre_group}")
        subgroups = [s for s, g in SUBGROUP_GROUPS.items() if g == dre_group]
        if len(subgroups) != 1:
            raise InvalidData(f"Informe o subgrupo da DRE para o grupo {dre_group}")
        _check_type(entry_type, dre_group)
        return dre_group, subgroups[0]

    if isinstance(names, str):
        names = (names,)

    tags = (OUTROS, "OUTROS")
    for name in names:
        tags = classify(entry_type, name)
        if tags[0] != OUTROS:
            break
    return tags


def _check_type(entry_type: str, group: str) -> None:
    if entry_type == "income" and group != RECEITA_BRUTA:
        raise InvalidData("Categorias de receita pertencem à receita bruta")
    if entry_type == "expense" and group == RECEITA_BRUTA:
        raise InvalidData("Categorias de despesa não podem ser receita bruta")
