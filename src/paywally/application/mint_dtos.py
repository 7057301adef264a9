"""Data Transfer Objects for the Cashu mint REST API (NUT-01..05, NUT-08)."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain.entities import BlindSignature, BlindedMessage, Proof


class KeysetInfoDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    unit: str
    active: bool = True
    input_fee_ppk: int = 0


class KeysetsResponseDTO(BaseModel):
    keysets: List[KeysetInfoDTO]


class KeysetKeysDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    unit: str
    keys: dict[int, str]


class KeysResponseDTO(BaseModel):
    keysets: List[KeysetKeysDTO]


class PostMintQuoteRequestDTO(BaseModel):
    amount: int = Field(..., gt=0)
    unit: str = "sat"


class PostMeltQuoteRequestDTO(BaseModel):
    request: str = Field(..., min_length=1)
    unit: str = "sat"


class PostMintRequestDTO(BaseModel):
    quote: str
    outputs: List[BlindedMessage]


class PostMintResponseDTO(BaseModel):
    signatures: List[BlindSignature]


class PostMeltRequestDTO(BaseModel):
    quote: str
    inputs: List[Proof]
    outputs: List[BlindedMessage] = Field(default_factory=list)


class PostMeltResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    quote: Optional[str] = None
    state: Optional[str] = None
    paid: Optional[bool] = None
    payment_preimage: Optional[str] = None
    change: Optional[List[BlindSignature]] = None

    @property
    def is_paid(self) -> bool:
        if self.state is not None:
            return self.state == "PAID"
        return bool(self.paid)


class PostSwapRequestDTO(BaseModel):
    inputs: List[Proof]
    outputs: List[BlindedMessage]


class PostSwapResponseDTO(BaseModel):
    signatures: List[BlindSignature]
