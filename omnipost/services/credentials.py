"""
Password handling strategies.

"plain" stores and compares passwords verbatim. It is insecure and exists
to keep records written by earlier versions loginable. "hashed" uses
werkzeug's salted hashes. Either way register/login behave the same from
the outside.
"""

import hmac
from typing import Optional, Protocol

from werkzeug.security import check_password_hash, generate_password_hash


class CredentialStrategy(Protocol):
    def prepare(self, password: str) -> str: ...

    def verify(self, stored: Optional[str], candidate: str) -> bool: ...


class PlainTextCredentials:
    def prepare(self, password: str) -> str:
        return password

    def verify(self, stored: Optional[str], candidate: str) -> bool:
        if stored is None:
            return False
        return hmac.compare_digest(stored.encode(), candidate.encode())


class HashedCredentials:
    def prepare(self, password: str) -> str:
        return generate_password_hash(password)

    def verify(self, stored: Optional[str], candidate: str) -> bool:
        if not stored:
            return False
        return check_password_hash(stored, candidate)


def get_credential_strategy(scheme: str) -> CredentialStrategy:
    if scheme == "hashed":
        return HashedCredentials()
    if scheme == "plain":
        return PlainTextCredentials()
    raise ValueError(f"Unknown password scheme: {scheme}")
