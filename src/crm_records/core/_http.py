# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
HTTP client with timeout handling and optional session support.

This module provides :class:`~crm_records.core._http._HttpClient`, a thin wrapper
around the requests library that applies per-method default timeouts and reuses a
``requests.Session`` when one is supplied. Failures are not retried; they propagate
to the caller on the first attempt.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import requests

_logger = logging.getLogger(__name__)


class _HttpClient:
    """
    HTTP client with timeout handling and optional session support.

    :param timeout: Default request timeout in seconds. If None, uses per-method defaults.
    :type timeout: :class:`float` | None
    :param session: Optional requests.Session for connection pooling.
    :type session: :class:`requests.Session` | None
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.default_timeout: Optional[float] = timeout
        self._session = session

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Execute a single HTTP request.

        Applies default timeouts based on HTTP method (120s for POST/DELETE, 10s for others)
        unless ``timeout`` is passed explicitly or configured on the client.

        :param method: HTTP method (GET, POST, PATCH, DELETE, etc.).
        :type method: :class:`str`
        :param url: Target URL for the request.
        :type url: :class:`str`
        :return: HTTP response object.
        :rtype: :class:`requests.Response`
        :raises requests.exceptions.RequestException: If the request fails at the network level.
        """
        if "timeout" not in kwargs:
            if self.default_timeout is not None:
                kwargs["timeout"] = self.default_timeout
            else:
                m = (method or "").lower()
                kwargs["timeout"] = 120 if m in ("post", "delete") else 10

        start = time.perf_counter()
        if self._session is not None:
            response = self._session.request(method, url, **kwargs)
        else:
            response = requests.request(method, url, **kwargs)
        duration_ms = (time.perf_counter() - start) * 1000
        status_code = getattr(response, "status_code", 0)
        level = logging.WARNING if status_code >= 400 else logging.DEBUG
        _logger.log(level, "%s %s %s %.1fms", method.upper(), url, status_code, duration_ms)
        return response

    def close(self) -> None:
        """
        Close the HTTP client and release resources.

        If a session was provided, this method closes it. Safe to call multiple times.
        """
        if self._session is not None:
            self._session.close()
            self._session = None
