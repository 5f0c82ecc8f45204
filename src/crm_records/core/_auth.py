# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Bearer token cache for the Web API backing store."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from azure.core.credentials import AccessToken, TokenCredential

_logger = logging.getLogger(__name__)

# Tokens this close to ``expires_on`` are refreshed before use.
_REFRESH_MARGIN_SECONDS = 300


class _AuthManager:
    """
    Hand out bearer tokens per scope, asking the credential only when the cached
    token is missing or about to expire.

    :param credential: Azure Identity credential.
    :type credential: ~azure.core.credentials.TokenCredential
    :param clock: Returns the current time in epoch seconds. Defaults to :func:`time.time`.
    :type clock: Callable[[], float] or None
    """

    def __init__(self, credential: TokenCredential, clock: Optional[Callable[[], float]] = None) -> None:
        if not isinstance(credential, TokenCredential):
            raise TypeError("credential must implement azure.core.credentials.TokenCredential.")
        self.credential: TokenCredential = credential
        self._clock = clock or time.time
        self._tokens: Dict[str, AccessToken] = {}

    def _acquire_token(self, scope: str) -> str:
        """Return a bearer token for ``scope``, refreshing it near expiry."""
        cached = self._tokens.get(scope)
        if cached is not None and cached.expires_on - _REFRESH_MARGIN_SECONDS > self._clock():
            return cached.token
        token = self.credential.get_token(scope)
        self._tokens[scope] = token
        _logger.debug("acquired token for %s (expires_on=%s)", scope, token.expires_on)
        return token.token
