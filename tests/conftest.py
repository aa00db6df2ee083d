from datetime import date

import pytest

from application import create_app
from extensions import db
from modulos.fluxo_caixa.lancamentos import create_entry
from modulos.fluxo_caixa.usuarios import create_user


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def user(app):
    return create_user("Oficina do Zé", "ze@oficina.com.br", "segredo123")


@pytest.fixture
def other_user(app):
    return create_user("Outra Empresa", "contato@outra.com.br", "segredo456")


@pytest.fixture
def add_entry(user):
    """Cria lançamentos com valores padrão: pago, em 10/03/2024."""

    def _add(entry_type="expense", amount="100.00", category="Fornecedores", when=date(2024, 3, 10),
             status="paid", description=None, user_id=None):
        return create_entry(user_id or user.id, entry_type, {
            "description": description or f"{category} {amount}",
            "category": category,
            "amount": amount,
            "date": when.isoformat() if isinstance(when, date) else when,
            "status": status,
        })

    return _add
