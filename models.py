from datetime import datetime

from extensions import db

ENTRY_TYPES = ("income", "expense")
ENTRY_STATUSES = ("paid", "pending", "cancelled")


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(150), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Relacionamentos financeiros
    categories = db.relationship("Category", backref="user", lazy="dynamic", cascade="all, delete-orphan")
    entries = db.relationship("FinancialEntry", backref="user", lazy="dynamic", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
        }

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class Category(db.Model):
    """Categorias de receitas e despesas, com a classificação da DRE"""
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("user_id", "type", "name", name="uq_categories_user_type_name"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(10), nullable=False)  # income ou expense
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Classificação resolvida na criação (ver modulos.fluxo_caixa.taxonomia)
    dre_group = db.Column(db.String(30), nullable=False, default="OUTROS")
    dre_subgroup = db.Column(db.String(30), nullable=False, default="OUTROS")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "name": self.name,
            "is_active": bool(self.is_active),
            "dre_group": self.dre_group,
            "dre_subgroup": self.dre_subgroup,
        }

    def __repr__(self) -> str:
        return f"<Category {self.name} ({self.type})>"


class FinancialEntry(db.Model):
    """Lançamentos financeiros (receitas e despesas)"""
    __tablename__ = "financial_entries"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_financial_entries_amount"),
        db.CheckConstraint("type IN ('income', 'expense')", name="ck_financial_entries_type"),
        db.CheckConstraint("status IN ('paid', 'pending', 'cancelled')", name="ck_financial_entries_status"),
        db.Index("idx_financial_entries_report", "user_id", "type", "status", "entry_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = db.Column(db.String(10), nullable=False)  # income ou expense

    # Dados do lançamento
    description = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100), nullable=False)  # nome da categoria (texto livre)
    amount = db.Column(db.Numeric(15, 2), nullable=False)

    # Data e status
    entry_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), default="pending", nullable=False)  # paid, pending, cancelled

    # Observações
    notes = db.Column(db.Text)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "description": self.description,
            "category": self.category,
            "amount": float(self.amount or 0),
            "date": self.entry_date.isoformat() if self.entry_date else None,
            "status": self.status,
            "notes": self.notes or "",
        }

    def __repr__(self) -> str:
        return f"<FinancialEntry {self.description} R$ {self.amount}>"
