"""HTTP client for the claims service, as used from a browser profile."""

import httpx

from cashoffer.client.state import CachedIdentity
from cashoffer.common.config import settings
from cashoffer.common.errors import TransientQueryError, ValidationError
from cashoffer.services.claims.schemas import ClaimResponse, ClaimSubmitRequest


class ClaimsClient:
    """Claim sink plus the recent-approval query the reconciler polls.

    Transport failures and 5xx responses surface as `TransientQueryError`.
    """

    def __init__(
        self,
        base_url: str = settings.claims_url,
        timeout: float = 5.0,
        http: httpx.AsyncClient | None = None,
        user_agent: str = "cashoffer-client",
    ) -> None:
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.user_agent = user_agent

    async def submit_claim(self, req: ClaimSubmitRequest) -> ClaimResponse:
        try:
            resp = await self.http.post(
                "/claims",
                json=req.model_dump(mode="json"),
                headers={"User-Agent": self.user_agent},
            )
        except httpx.HTTPError as exc:
            raise TransientQueryError(f"claim submission failed: {exc}") from exc
        if resp.status_code == 422:
            detail = resp.json().get("detail")
            if isinstance(detail, dict) and "field_errors" in detail:
                raise ValidationError(detail["field_errors"])
            raise ValidationError({"__root__": str(detail)})
        if resp.status_code >= 400:
            raise TransientQueryError(f"claim submission rejected (status={resp.status_code})")
        return ClaimResponse.model_validate(resp.json())

    async def fetch_recent_approval(self, identity: CachedIdentity) -> ClaimResponse | None:
        """Newest approved claim for either identity field in the window, or None."""

        params = {"limit": 1}
        if identity.email:
            params["email"] = identity.email
        if identity.paypal_email:
            params["paypal_email"] = identity.paypal_email
        try:
            resp = await self.http.get("/claims/approved", params=params)
            resp.raise_for_status()
            rows = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransientQueryError(f"approval query failed: {exc}") from exc
        if not rows:
            return None
        return ClaimResponse.model_validate(rows[0])

    async def close(self) -> None:
        await self.http.aclose()
