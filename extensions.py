"""
Extensões Flask - Configuração Centralizada
==========================================

Este arquivo contém as extensões Flask configuradas
para uso em toda a aplicação de fluxo de caixa.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Instância global do SQLAlchemy
db = SQLAlchemy()

# Instância global do Flask-Migrate
migrate = Migrate()

from config_db import get_database_url, get_db_stats


def get_current_db_url():
    """Retorna URL atual do banco"""
    return get_database_url('auto')


def init_database():
    """Cria as tabelas de todos os modelos registrados (requer app context)."""
    import models  # noqa: F401  registra os modelos no metadata

    db.create_all()


__all__ = [
    'db',
    'migrate',
    'get_current_db_url',
    'get_db_stats',
    'init_database',
]
