"""Pydantic models for the Bright Data request API.

The provider accepts ``{zone, url, format, country, session, timeout}``
and answers ``{status_code, body}``, where ``body`` is the raw page HTML
(or an error payload on failure).
"""

import json
from typing import Any, Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field, field_validator


class ProviderRequest(BaseModel):
    """Payload sent to the provider for one page fetch."""

    zone: str = Field(description="Provider zone identifier")
    url: str = Field(description="Page the provider should fetch")
    format: str = Field(default="raw", description="Response format")
    country: str = Field(default="us", description="Country the provider fetches from")
    session: Optional[str] = Field(default=None, description="Sticky session identifier")
    timeout: int = Field(default=30, ge=1, description="Provider-side timeout in seconds")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure the target is an HTTP(S) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the provider, without unset optional fields."""
        return self.model_dump(exclude_none=True)


class ProviderResponse(BaseModel):
    """Provider answer for one page fetch."""

    status_code: int = Field(description="Status of the fetched page")
    body: str = Field(default="", description="Raw page HTML")
    error: Optional[str] = Field(default=None, description="Provider error message")

    @field_validator('body', mode='before')
    @classmethod
    def coerce_body(cls, v: Any) -> str:
        """Accept a missing body or a JSON error object."""
        if v is None:
            return ""
        if isinstance(v, (dict, list)):
            return json.dumps(v)
        return v

    @property
    def ok(self) -> bool:
        """Check for a 2xx status."""
        return 200 <= self.status_code < 300


class ProxyDetails(BaseModel):
    """Connection details for direct proxy access to the provider."""

    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None
    zone_name: str
    proxy_url: str
    curl_command: str

    @classmethod
    def build(
        cls,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        zone_name: str,
        api_url: str,
        api_key: Optional[str],
        sample_url: str = "https://www.facebook.com/marketplace/",
    ) -> "ProxyDetails":
        """
        Assemble proxy details and a ready-to-run curl example.

        Args:
            host: Proxy host.
            port: Proxy port.
            username: Proxy username.
            password: Proxy password.
            zone_name: Provider zone.
            api_url: Provider request endpoint.
            api_key: Provider API key.
            sample_url: Page used in the curl example.
        """
        if username:
            credentials = quote(username, safe="")
            if password:
                credentials += ":" + quote(password, safe="")
            proxy_url = f"http://{credentials}@{host}:{port}"
        else:
            proxy_url = f"http://{host}:{port}"

        payload = json.dumps({"zone": zone_name, "url": sample_url, "format": "raw"})
        curl_command = (
            f'curl "{api_url}" '
            f'-H "Content-Type: application/json" '
            f'-H "Authorization: Bearer {api_key or ""}" '
            f"-d '{payload}'"
        )

        return cls(
            host=host,
            port=port,
            username=username,
            password=password,
            zone_name=zone_name,
            proxy_url=proxy_url,
            curl_command=curl_command,
        )
