from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass
class Config:
    secret_key: str = "change-me"
    database_url: str = "sqlite:///dev.db"
    jwt_secret: str | None = None
    jwt_secrets: list[str] = field(default_factory=list)  # first element used for signing; all accepted for verification
    jwt_expires_seconds: int = 604800  # 7 days
    jwt_leeway_seconds: int = 60
    cron_secret: str | None = None
    max_establishments: int = 10
    health_book_warning_days: int = 10
    auth_rate_limit: dict[str, int] = field(
        default_factory=lambda: {"window_sec": 300, "max_failures": 5, "lock_sec": 600}
    )
    logo_path: str | None = None
    pdf_font_path: str | None = None
    enable_demo_seed: bool = False

    @classmethod
    def from_env(cls) -> Config:
        jwt_multi = os.getenv("JWT_SECRETS", "")
        # JWT_SECRETS allows key rotation: comma-separated secrets; first used for signing.
        jwt_list = [s for s in [j.strip() for j in jwt_multi.split(",")] if s]
        return cls(
            secret_key=os.getenv("SECRET_KEY", "change-me"),
            database_url=os.getenv("DATABASE_URL", "sqlite:///dev.db"),
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_secrets=jwt_list,
            jwt_expires_seconds=int(os.getenv("JWT_EXPIRES_SECONDS", "604800")),
            jwt_leeway_seconds=int(os.getenv("JWT_LEEWAY_SECONDS", "60")),
            cron_secret=os.getenv("CRON_SECRET") or None,
            max_establishments=int(os.getenv("MAX_ESTABLISHMENTS", "10")),
            health_book_warning_days=int(os.getenv("HEALTH_BOOK_WARNING_DAYS", "10")),
            auth_rate_limit={
                "window_sec": int(os.getenv("AUTH_RATE_WINDOW_SEC", "300")),
                "max_failures": int(os.getenv("AUTH_RATE_MAX_FAILURES", "5")),
                "lock_sec": int(os.getenv("AUTH_RATE_LOCK_SEC", "600")),
            },
            logo_path=os.getenv("LOGO_PATH") or None,
            pdf_font_path=os.getenv("PDF_FONT_PATH") or None,
            enable_demo_seed=bool(int(os.getenv("ENABLE_DEMO_SEED", "0"))),
        )

    def override(self, d: dict):
        for k, v in d.items():
            if hasattr(self, k):
                setattr(self, k, v)

    def to_flask_dict(self):
        return {
            "SECRET_KEY": self.secret_key,
            "SQLALCHEMY_DATABASE_URI": self.database_url,
            "JWT_SECRET": self.jwt_secret,
            "JWT_SECRETS": self.jwt_secrets,
            "JWT_EXPIRES_SECONDS": self.jwt_expires_seconds,
            "JWT_LEEWAY_SECONDS": self.jwt_leeway_seconds,
            "CRON_SECRET": self.cron_secret,
            "MAX_ESTABLISHMENTS": self.max_establishments,
            "HEALTH_BOOK_WARNING_DAYS": self.health_book_warning_days,
            "AUTH_RATE_LIMIT": self.auth_rate_limit,
            "LOGO_PATH": self.logo_path,
            "PDF_FONT_PATH": self.pdf_font_path,
            "ENABLE_DEMO_SEED": self.enable_demo_seed,
        }
