"""
Secret values for construct configuration.

Constructs often need credentials in their props. SecretManager encrypts
those values with a symmetric key so they can be committed alongside the
construct tree and decrypted only where the key is available::

    manager = SecretManager.from_env("SMITH_SECRET_KEY")
    props["db_password"] = manager.encrypt("hunter2")
"""

from cryptography.fernet import Fernet, InvalidToken

from .config import get_string
from .faults import ConfigInvalidFault
from .validation import check_string


class SecretManager:
    """Encrypts and decrypts secret strings with a Fernet key."""

    __slots__ = ("_fernet",)

    def __init__(self, key: str | bytes):
        if isinstance(key, str):
            key = key.encode("utf-8")
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as exc:
            raise ConfigInvalidFault("secret_key", "not a valid Fernet key") from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    @classmethod
    def from_env(cls, name: str) -> "SecretManager":
        """Create a manager from the key stored in environment variable ``name``."""
        return cls(get_string(name))

    def encrypt(self, value: str) -> str:
        check_string(value, "Invalid value (arg #1)", argument="value")
        return self._fernet.encrypt(value.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        check_string(token, "Invalid token (arg #1)", argument="token")
        try:
            return self._fernet.decrypt(token.encode("utf-8")).decode("utf-8")
        except InvalidToken as exc:
            raise ConfigInvalidFault("secret", "token was not produced with this key") from exc
