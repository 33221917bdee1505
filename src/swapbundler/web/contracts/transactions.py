"""Transaction inspection contracts."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class DecodeTransactionRequest(BaseModel):
    """Request to decode a base64 transaction."""

    transaction: Optional[str] = Field(None, description="Base64 serialized transaction")


class DecodedAccount(BaseModel):
    index: int
    pubkey: Optional[str] = Field(None, description="None when loaded from a lookup table")
    isSigner: bool
    isWritable: bool


class DecodedInstruction(BaseModel):
    programId: Optional[str]
    programName: str
    accounts: list[DecodedAccount]
    dataHex: str
    dataLength: int
    decoded: Optional[dict[str, Any]] = None


class DecodedTransaction(BaseModel):
    """Human-readable view of a transaction."""

    version: Any
    signatures: list[str]
    feePayer: Optional[str]
    recentBlockhash: str
    accountKeys: list[str]
    addressTableLookups: list[dict[str, Any]] = Field(default_factory=list)
    numInstructions: int
    instructions: list[DecodedInstruction]
