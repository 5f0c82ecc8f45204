# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


def _env_float(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


@dataclass(frozen=True)
class CrmConfig:
    """
    Configuration settings for CRM record operations.

    :param api_version: Web API version segment used by the OData store (default: ``"v9.2"``).
    :type api_version: str
    :param http_timeout: Request timeout in seconds (default: method-dependent).
    :type http_timeout: float or None
    :param strict_schema: Reject fields that are not declared on the record kind's schema (default: True).
    :type strict_schema: bool
    """

    api_version: str = "v9.2"
    http_timeout: Optional[float] = None
    strict_schema: bool = True

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "CrmConfig":
        """
        Create a configuration instance from ``CRM_RECORDS_*`` environment variables.

        Recognised variables: ``CRM_RECORDS_API_VERSION``, ``CRM_RECORDS_HTTP_TIMEOUT``
        and ``CRM_RECORDS_STRICT_SCHEMA``. Unset variables keep their defaults.

        :param env: Mapping to read instead of :data:`os.environ` (useful in tests).
        :return: Configuration instance.
        :rtype: ~crm_records.core.config.CrmConfig
        :raises ValueError: If ``CRM_RECORDS_HTTP_TIMEOUT`` is not a number.
        """
        env = os.environ if env is None else env
        return cls(
            api_version=(env.get("CRM_RECORDS_API_VERSION") or "").strip() or "v9.2",
            http_timeout=_env_float(env, "CRM_RECORDS_HTTP_TIMEOUT"),  # None -> per-method default
            strict_schema=_env_bool(env, "CRM_RECORDS_STRICT_SCHEMA", True),
        )
