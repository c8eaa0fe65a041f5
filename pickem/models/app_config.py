from datetime import datetime, timezone

from pickem import db


class AppConfig(db.Model):
    """Generic key/value settings table"""

    __tablename__ = "app_config"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(200), nullable=False, unique=True, index=True)
    value = db.Column(db.Text, nullable=False)
    description = db.Column(db.String(500))

    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self):
        return f"<AppConfig {self.key}={self.value}>"

    @staticmethod
    def get_value(key):
        entry = AppConfig.query.filter_by(key=key).first()
        return entry.value if entry else None

    @staticmethod
    def set_value(key, value, description=None):
        """Insert or update a key. Caller commits."""
        entry = AppConfig.query.filter_by(key=key).first()
        if not entry:
            entry = AppConfig(key=key)
            db.session.add(entry)

        entry.value = value
        if description:
            entry.description = description
        return entry
