import logging
from typing import Optional, Protocol

from linguaprep.domain.errors import AuthenticationRequired

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def resolve(self, token: Optional[str]) -> str:
        """
        Returns the opaque user id behind a bearer token or raises
        AuthenticationRequired.
        """
        ...


class PassthroughIdentityProvider:
    """
    Trusts the upstream gateway: the bearer token already is the user id.
    """

    def resolve(self, token: Optional[str]) -> str:
        if not token or not token.strip():
            raise AuthenticationRequired("Not authenticated")
        user_id = token.strip()
        logger.debug(f"Resolved identity user_id={user_id}")
        return user_id
