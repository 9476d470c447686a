"""Account usage models and persistence."""

from .models import Account
from .repository import PostgresAccountRepository

__all__ = ["Account", "PostgresAccountRepository"]
