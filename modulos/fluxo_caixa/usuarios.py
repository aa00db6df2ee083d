"""
Usuários
========

Cadastro dos donos de categorias e lançamentos.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash

from extensions import db
from models import User

from .erros import EmailAlreadyRegistered, InvalidData, UserNotFound

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFound(f"Usuário {user_id} não encontrado")
    return user


def create_user(name: str | None, email: str | None, password: str | None) -> User:
    """Cadastra um usuário e cria suas categorias padrão."""
    from .categorias import ensure_default_categories

    name = (name or "").strip()
    email = (email or "").strip().lower()
    password = password or ""

    if not name or not email or not password:
        raise InvalidData("Nome, email e senha são obrigatórios")

    if "@" not in email:
        raise InvalidData("E-mail inválido.")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidData(f"Use uma senha com pelo menos {MIN_PASSWORD_LENGTH} caracteres.")

    exists = User.query.filter(func.lower(User.email) == email).first()
    if exists:
        logger.warning(f"Cadastro recusado, e-mail já em uso: {email}")
        raise EmailAlreadyRegistered()

    user = User(name=name, email=email, password_hash=generate_password_hash(password))
    try:
        db.session.add(user)
        db.session.flush()
        ensure_default_categories(user.id, commit=False)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    logger.info(f"Usuário criado: id={user.id} email={email}")
    return user
