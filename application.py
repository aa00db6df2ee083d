# application.py
"""
Fábrica da aplicação Flask do Fluxo de Caixa.

Não há rotas HTTP: a aplicação existe para configurar o banco
(Flask-SQLAlchemy / Flask-Migrate) e expor os comandos de CLI
(``flask --app application <comando>``).
"""

import json
import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from extensions import db, migrate, get_current_db_url, get_db_stats, init_database

# Carregar variáveis de ambiente
load_dotenv()


def _configure_logging(app: Flask) -> None:
    level_name = (os.getenv("LOG_LEVEL") or ("DEBUG" if app.debug else "INFO")).strip().upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logging.getLogger("modulos").setLevel(level)


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    # Configuração do banco usando config_db.py
    app.config['SQLALCHEMY_DATABASE_URI'] = get_current_db_url()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {
        'pool_pre_ping': True,
    }
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'chave_padrao_insegura')

    # Quantidade de meses da evolução mensal do relatório
    try:
        app.config['REPORT_EVOLUTION_MONTHS'] = int(os.getenv('REPORT_EVOLUTION_MONTHS', '6').strip())
    except ValueError:
        app.config['REPORT_EVOLUTION_MONTHS'] = 6

    if test_config:
        app.config.update(test_config)

    _configure_logging(app)

    # Inicializar extensões
    db.init_app(app)
    migrate.init_app(app, db)

    import models  # noqa: F401  registra os modelos para o Flask-Migrate

    _register_commands(app)

    return app


def _register_commands(app: Flask) -> None:

    @app.cli.command('init-db')
    def init_db_command():
        """Cria as tabelas no banco configurado."""
        init_database()
        click.echo('✅ Banco inicializado com sucesso!')

    @app.cli.command('db-stats')
    def db_stats_command():
        """Mostra estatísticas do banco de dados."""
        stats = get_db_stats(engine=db.engine)
        click.echo(f"📊 Estatísticas do Banco: {stats['type']}")
        click.echo(f"🔗 Status: {stats['status']}")
        if stats.get('tables'):
            click.echo(f"📋 Tabelas: {', '.join(stats['tables'])}")

    @app.cli.command('create-user')
    @click.option('--name', required=True, help='Nome do usuário')
    @click.option('--email', required=True, help='E-mail (único)')
    @click.password_option('--password', help='Senha (mínimo 6 caracteres)')
    def create_user_command(name, email, password):
        """Cadastra um usuário com as categorias padrão."""
        from modulos.fluxo_caixa.usuarios import create_user

        try:
            user = create_user(name, email, password)
        except HTTPException as exc:
            raise click.ClickException(exc.description)
        click.echo(f"✅ Usuário criado: id={user.id} ({user.email})")

    @app.cli.command('dre')
    @click.option('--user-id', type=int, required=True, help='Id do usuário')
    @click.option(
        '--period',
        type=click.Choice(['mes-atual', 'trimestre', 'ano', 'personalizado']),
        default='mes-atual',
        show_default=True,
    )
    @click.option('--start', help='Data inicial YYYY-MM-DD (período personalizado)')
    @click.option('--end', help='Data final YYYY-MM-DD (período personalizado)')
    def dre_command(user_id, period, start, end):
        """Imprime o relatório da DRE em JSON."""
        from modulos.fluxo_caixa.relatorio import build_report

        try:
            report = build_report(
                user_id,
                kind=period,
                start=start,
                end=end,
                evolution_months=app.config['REPORT_EVOLUTION_MONTHS'],
            )
        except HTTPException as exc:
            raise click.ClickException(exc.description)
        click.echo(json.dumps(report, ensure_ascii=False, indent=2))
