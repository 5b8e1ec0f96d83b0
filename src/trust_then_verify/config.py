"""ClientConfig — connection settings for the trust registry client.

Defaults point at the public registry. Deployments can override them in
code or through environment variables via :meth:`ClientConfig.from_env`.
"""
from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

DEFAULT_REGISTRY_URL: str = "https://trustthenverify.com"
DEFAULT_TIMEOUT: float = 10.0
USER_AGENT: str = "trust-then-verify-python/0.1"

ENV_REGISTRY_URL: str = "TRUST_REGISTRY_URL"
ENV_TIMEOUT: str = "TRUST_REGISTRY_TIMEOUT"


class ClientConfig(BaseModel):
    """Settings for :class:`~trust_then_verify.registry.client.TrustClient`.

    Parameters
    ----------
    base_url:
        Root URL of the registry. A trailing slash is stripped.
    timeout:
        Per-request timeout in seconds. A request that times out is
        reported as the registry being unavailable.
    user_agent:
        User-Agent header sent with every request.
    """

    base_url: str = DEFAULT_REGISTRY_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0.0)
    user_agent: str = USER_AGENT

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """Build a config from ``TRUST_REGISTRY_URL`` / ``TRUST_REGISTRY_TIMEOUT``.

        Unset variables fall back to the defaults.

        Raises
        ------
        pydantic.ValidationError
            If the timeout is not a positive number.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if env.get(ENV_REGISTRY_URL):
            values["base_url"] = env[ENV_REGISTRY_URL]
        if env.get(ENV_TIMEOUT):
            values["timeout"] = env[ENV_TIMEOUT]
        return cls.model_validate(values)
