"""
Configuração Centralizada do Banco de Dados - Fluxo de Caixa
===========================================================

Este arquivo centraliza a resolução da URL de conexão e as estatísticas
do banco utilizadas pela aplicação.

Suporte a múltiplos bancos:
- PostgreSQL (produção, via DATABASE_URL)
- SQLite (desenvolvimento/local)

Uso:
    from config_db import get_db_config, get_database_url, get_db_stats

    url = get_database_url()
"""

import os
from typing import Dict, Any
from urllib.parse import urlparse

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import make_url
from dotenv import load_dotenv

# Carregar variáveis de ambiente
load_dotenv()

# Configurações padrão
DEFAULT_CONFIG = {
    'postgresql': {
        'host': 'localhost',
        'port': 5432,
        'database': 'fluxo_caixa',
        'username': 'postgres',
        'password': '',
    },
    'sqlite': {
        'database': 'fluxo_caixa.db',
        'path': 'fluxo_caixa.db',  # relativo à pasta instance do Flask
    },
}


def _detect_db_type(database_url: str | None) -> str:
    if not database_url:
        return 'sqlite'
    scheme = urlparse(database_url).scheme
    if scheme.startswith('sqlite'):
        return 'sqlite'
    # Qualquer outro esquema é tratado como PostgreSQL
    return 'postgresql'


def get_db_config(db_type: str = 'auto') -> Dict[str, Any]:
    """
    Retorna configuração completa do banco de dados.

    Args:
        db_type: Tipo de banco ('postgresql', 'sqlite', 'auto')

    Returns:
        Dicionário com configurações do banco
    """
    if db_type == 'auto':
        actual_db_type = _detect_db_type(os.getenv('DATABASE_URL'))
    else:
        actual_db_type = db_type

    config = DEFAULT_CONFIG.get(actual_db_type, {}).copy()

    if actual_db_type == 'postgresql':
        config.update({
            'host': os.getenv('DB_HOST', config.get('host')),
            'port': int(os.getenv('DB_PORT', config.get('port'))),
            'database': os.getenv('DB_NAME', config.get('database')),
            'username': os.getenv('DB_USER', config.get('username')),
            'password': os.getenv('DB_PASSWORD', config.get('password')),
        })
    elif actual_db_type == 'sqlite':
        config.update({
            'database': os.getenv('SQLITE_DB', config.get('database')),
            'path': os.getenv('SQLITE_PATH', config.get('path')),
        })

    config['type'] = actual_db_type
    return config


def get_database_url(db_type: str = 'auto') -> str:
    """
    Retorna a URL de conexão SQLAlchemy para o banco.

    Com ``db_type='auto'`` a variável ``DATABASE_URL`` tem prioridade.
    """
    if db_type == 'auto':
        database_url = os.getenv('DATABASE_URL')
        if database_url:
            # Render/Heroku ainda entregam o esquema antigo "postgres://"
            if database_url.startswith('postgres://'):
                database_url = database_url.replace('postgres://', 'postgresql://', 1)
            return database_url

    config = get_db_config(db_type)

    if config['type'] == 'postgresql':
        return (
            f"postgresql://{config['username']}:{config['password']}"
            f"@{config['host']}:{config['port']}/{config['database']}"
        )

    db_path = config.get('path') or config['database']
    return f"sqlite:///{db_path}"


def _mask_url(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def get_db_stats(database_url: str | None = None, engine=None) -> Dict[str, Any]:
    """
    Retorna estatísticas do banco de dados.

    Com ``engine`` (ex.: ``db.engine`` da aplicação) a conexão existente é
    reutilizada; caso contrário, um engine temporário é criado para a URL.

    Returns:
        Dicionário com tipo, URL mascarada, tabelas e status
    """
    if engine is not None:
        actual_url = engine.url.render_as_string(hide_password=True)
    else:
        actual_url = database_url or get_database_url()

    stats = {
        'type': _detect_db_type(actual_url),
        'url': _mask_url(actual_url),
        'tables': [],
    }

    try:
        if engine is not None:
            stats['tables'] = sorted(inspect(engine).get_table_names())
        else:
            temp_engine = create_engine(actual_url)
            try:
                stats['tables'] = sorted(inspect(temp_engine).get_table_names())
            finally:
                temp_engine.dispose()
        stats['status'] = 'connected'
    except Exception as e:
        stats['status'] = f'error: {str(e)}'

    return stats
