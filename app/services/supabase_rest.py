from __future__ import annotations

from typing import Any, Sequence

from fastapi import HTTPException

from app.routes.http import http_client
from app.services.metrics import record_dependency_call_async
from app.services.resilience import DEFAULT_TIMEOUT

QueryParams = dict[str, Any] | Sequence[tuple[str, Any]]


class SupabaseRestRepository:
    """Thin PostgREST wrapper authenticated with the service role key."""

    def __init__(self, *, base_url: str | None, service_role_key: str | None):
        self.base_url = (base_url or "").rstrip("/")
        self.service_role_key = service_role_key

    def _resource_url(self, resource: str) -> str:
        if not self.base_url:
            raise HTTPException(status_code=500, detail="SUPABASE_URL is not configured.")
        return f"{self.base_url}/rest/v1/{resource.lstrip('/')}"

    def headers(self, *, prefer: str | None = None) -> dict[str, str]:
        if not self.service_role_key:
            raise HTTPException(status_code=500, detail="Supabase service role key missing.")

        headers = {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def get(
        self,
        resource: str,
        *,
        params: QueryParams | None = None,
        headers: dict[str, str] | None = None,
    ):
        url = self._resource_url(resource)
        request_headers = headers or self.headers()
        return await record_dependency_call_async(
            "supabase",
            lambda: http_client.get(url, params=params, headers=request_headers, timeout=DEFAULT_TIMEOUT),
        )


def expect_ok(response, *, detail: str, allowed: set[int] | tuple[int, ...] = (200,)):
    if response.status_code not in set(allowed):
        raise HTTPException(status_code=500, detail=detail)
    return response
