# weekly_bot/services/auth.py
from __future__ import annotations

from dataclasses import dataclass

from weekly_bot.config import Settings


@dataclass(frozen=True, slots=True)
class AuthResult:
    is_admin: bool
    role: str  # "root" | "user"


class AuthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def resolve(self, telegram_id: int | None) -> AuthResult:
        # Operators come from env only.
        if telegram_id is not None and telegram_id in self.settings.root_admin_ids:
            return AuthResult(is_admin=True, role="root")
        return AuthResult(is_admin=False, role="user")
