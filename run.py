"""Ponto de entrada WSGI / CLI do Fluxo de Caixa.

Expõe a variável ``application`` que o servidor (Gunicorn/uWSGI) procura e
permite ``flask --app run <comando>``.
"""
import logging
import os

from application import create_app

application = create_app()

# Alias para compatibilidade com código que usa "app"
app = application

logger = logging.getLogger(__name__)


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Iniciando na porta {port}")
    application.run(debug=True, host='0.0.0.0', port=port)
