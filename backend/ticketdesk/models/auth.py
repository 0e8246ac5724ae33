from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class User(db.Model):
    """
    User accounts for authentication and attribution.

    WHY: Every action must be attributable. No shared logins.

    token_version only ever increases. Every issued session token carries a
    snapshot of it; bumping the counter (password change, block, logout
    everywhere) invalidates all outstanding tokens of the user at once.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # Login name; registration uses the email address
    username = db.Column(db.String(255), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    name = db.Column(db.String(120), nullable=False)
    surname = db.Column(db.String(120), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.Text, nullable=False)

    # ADMIN, PROJECT_MANAGER, USER (see ticketdesk.permissions.roles)
    role = db.Column(db.String(32), nullable=False)

    token_version = db.Column(db.Integer, nullable=False, default=0, server_default=db.text("0"))
    blocked = db.Column(db.Boolean, nullable=False, default=False, server_default=db.text("0"))

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    password_changed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "surname": self.surname,
            "role": self.role,
            "is_blocked": self.blocked,
            "created_at": to_utc_z(self.created_at),
            "password_changed_at": to_utc_z(self.password_changed_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }

    def to_short_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "surname": self.surname,
        }


class PasswordResetToken(db.Model):
    """
    One-time password reset code.

    The row id is a random UUID handed to the user together with the numeric
    code ("{id}.{code}"); only a bcrypt hash of the code is stored.

    Single use: deleted on redemption, on expiry and whenever the user's
    password changes.
    """
    __tablename__ = "password_reset_tokens"
    __table_args__ = (
        db.Index("ix_password_reset_tokens_user", "user_id"),
        db.Index("ix_password_reset_tokens_expires", "expires_at"),
    )

    id = db.Column(db.String(36), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    code_hash = db.Column(db.String(128), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship(
        "User",
        backref=db.backref("password_reset_tokens", lazy=True, cascade="all, delete-orphan"),
    )

    def __repr__(self) -> str:
        return f"<PasswordResetToken id={self.id} user_id={self.user_id}>"
