"""
Holds the identity on whose behalf deck writes are performed.
"""

import logging
from typing import Optional

from .exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


class IdentitySession:
    """
    The signed-in identity for one client.

    Credentials are checked by the identity provider before `sign_in` is
    called; this object only records the outcome.
    """

    def __init__(self, user_id: Optional[str] = None):
        self._user_id: Optional[str] = user_id or None

    def sign_in(self, user_id: str) -> None:
        if not user_id:
            raise ValueError("user_id must be a non-empty string.")
        self._user_id = user_id
        logger.info(f"Signed in as {user_id}.")

    def sign_out(self) -> None:
        if self._user_id is not None:
            logger.info(f"Signed out {self._user_id}.")
        self._user_id = None

    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def current(self) -> str:
        """
        Return the signed-in identity.

        Raises:
            UnauthenticatedError: If nobody is signed in.
        """
        if self._user_id is None:
            raise UnauthenticatedError("No user is signed in.")
        return self._user_id
