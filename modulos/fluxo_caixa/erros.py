"""Exceções do módulo de fluxo de caixa.

Todas derivam das exceções HTTP do werkzeug, de modo que quem chama
(CLI ou uma rota futura) obtém o status equivalente via ``exc.code``.
"""

from werkzeug.exceptions import BadRequest, Conflict, NotFound


class UserNotFound(NotFound):
    description = "Usuário não encontrado"


class EntryNotFound(NotFound):
    description = "Lançamento não encontrado"


class CategoryNotFound(NotFound):
    description = "Categoria não encontrada"


class InvalidData(BadRequest):
    description = "Dados incorretos, verifique"


class InvalidRange(BadRequest):
    description = "Data inicial maior que a data final"


class CategoryInUse(BadRequest):
    description = (
        "Não é possível deletar esta categoria pois ela está sendo usada "
        "em despesas ou receitas"
    )


class CategoryAlreadyExists(Conflict):
    description = "Categoria já existe"


class EmailAlreadyRegistered(Conflict):
    description = "Este e-mail já está cadastrado."
