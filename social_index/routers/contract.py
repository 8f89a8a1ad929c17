"""
Ledger lookups:
  GET /contract/address              — configured contract address
  GET /contract/abi                  — contract interface (human-readable ABI)
  GET /contract/post-counter         — number of posts created on-chain
  GET /contract/post/{post_id}       — a post as the contract stores it
  GET /contract/profile/{address}    — a profile as the contract stores it
  GET /contract/receipt/{tx_hash}    — confirmation state of a transaction
  GET /contract/block-number         — current chain head
"""
from fastapi import APIRouter, Depends, Path

from social_index.clients.ledger_client import CONTRACT_ABI, LedgerClient
from social_index.deps import get_ledger
from social_index.errors import NotFound
from social_index.schemas import OnChainPost, OnChainProfile, ReceiptResponse

router = APIRouter()


@router.get("/address")
async def contract_address(ledger: LedgerClient = Depends(get_ledger)):
    if not ledger.contract_address:
        raise NotFound("Contract address not configured")
    return {"address": ledger.contract_address}


@router.get("/abi")
async def contract_abi():
    return {"abi": CONTRACT_ABI}


@router.get("/post-counter")
async def post_counter(ledger: LedgerClient = Depends(get_ledger)):
    # uint256, so rendered as a string like the other on-chain integers.
    return {"counter": str(await ledger.post_counter())}


@router.get("/post/{post_id}", response_model=OnChainPost)
async def onchain_post(
    post_id: int = Path(..., ge=0), ledger: LedgerClient = Depends(get_ledger)
):
    return await ledger.get_post(post_id)


@router.get("/profile/{address}", response_model=OnChainProfile)
async def onchain_profile(address: str, ledger: LedgerClient = Depends(get_ledger)):
    return await ledger.get_profile(address)


@router.get("/receipt/{tx_hash}", response_model=ReceiptResponse)
async def transaction_receipt(tx_hash: str, ledger: LedgerClient = Depends(get_ledger)):
    return await ledger.get_receipt(tx_hash)


@router.get("/block-number")
async def block_number(ledger: LedgerClient = Depends(get_ledger)):
    return {"blockNumber": await ledger.block_number()}
