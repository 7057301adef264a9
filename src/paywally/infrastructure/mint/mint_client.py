from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar
from types import TracebackType

import httpx
from pydantic import BaseModel, ValidationError

from ...application.mint_dtos import (
    KeysResponseDTO,
    KeysetsResponseDTO,
    PostMeltQuoteRequestDTO,
    PostMeltRequestDTO,
    PostMeltResponseDTO,
    PostMintQuoteRequestDTO,
    PostMintRequestDTO,
    PostMintResponseDTO,
    PostSwapRequestDTO,
    PostSwapResponseDTO,
)
from ...domain.entities import MeltQuote, MintQuote
from ...domain.errors import MintError
from ..http.http_client import (
    AsyncHttpClient,
    HttpDecodeError,
    HttpStatusError,
    HttpTransportError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AsyncMintClient:
    """Asynchronous client for the Cashu mint HTTP API.

    Methods are bound to the mint DTOs and translate every transport, status or
    payload failure into :class:`MintError`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        *,
        melt_timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = AsyncHttpClient(base_url, timeout=timeout, transport=transport)
        self._melt_timeout = melt_timeout

    async def _call(
        self,
        method: str,
        path: str,
        model: Type[ModelT],
        what: str,
        *,
        body: Optional[BaseModel] = None,
        timeout: Optional[float] = None,
    ) -> ModelT:
        payload: Optional[Dict[str, Any]] = None if body is None else body.model_dump()
        try:
            data = await self._http.request_json(method, path, json=payload, timeout=timeout)
        except HttpStatusError as e:
            raise MintError(
                f"Mint rejected {what} with {e.status_code}: {e.detail}",
                status_code=e.status_code,
            ) from e
        except HttpTransportError as e:
            raise MintError(f"Could not reach mint for {what}: {e}") from e
        except HttpDecodeError as e:
            raise MintError(f"Invalid {what} response from mint: {e}") from e
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise MintError(f"Invalid {what} response from mint: {e}") from e

    async def get_keysets(self) -> KeysetsResponseDTO:
        return await self._call("GET", "/v1/keysets", KeysetsResponseDTO, "keysets")

    async def get_keys(self, keyset_id: str) -> KeysResponseDTO:
        return await self._call("GET", f"/v1/keys/{keyset_id}", KeysResponseDTO, "keys")

    async def post_mint_quote(self, dto: PostMintQuoteRequestDTO) -> MintQuote:
        return await self._call(
            "POST", "/v1/mint/quote/bolt11", MintQuote, "mint quote", body=dto
        )

    async def get_mint_quote(self, quote_id: str) -> MintQuote:
        return await self._call(
            "GET", f"/v1/mint/quote/bolt11/{quote_id}", MintQuote, "mint quote check"
        )

    async def post_mint(self, dto: PostMintRequestDTO) -> PostMintResponseDTO:
        return await self._call(
            "POST", "/v1/mint/bolt11", PostMintResponseDTO, "mint", body=dto
        )

    async def post_melt_quote(self, dto: PostMeltQuoteRequestDTO) -> MeltQuote:
        return await self._call(
            "POST", "/v1/melt/quote/bolt11", MeltQuote, "melt quote", body=dto
        )

    async def post_melt(self, dto: PostMeltRequestDTO) -> PostMeltResponseDTO:
        # Melting waits on a lightning payment, so it gets a longer timeout.
        return await self._call(
            "POST",
            "/v1/melt/bolt11",
            PostMeltResponseDTO,
            "melt",
            body=dto,
            timeout=self._melt_timeout,
        )

    async def post_swap(self, dto: PostSwapRequestDTO) -> PostSwapResponseDTO:
        return await self._call("POST", "/v1/swap", PostSwapResponseDTO, "swap", body=dto)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "AsyncMintClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
