"""Registry credentials built from user input."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Credential:
    """Credentials for a registry: a username and password, or tokens."""

    username: str = ""
    password: str = ""
    refresh_token: str = ""
    access_token: str = ""


EMPTY_CREDENTIAL = Credential()


def credential(username: str, password: str) -> Credential:
    """Turn a username and password into a credential.

    Without a username the password is taken as an identity (refresh) token.
    """
    if not username:
        return Credential(refresh_token=password)
    return Credential(username=username, password=password)