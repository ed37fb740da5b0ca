# cryptofolio/routers/portfolio.py
from fastapi import APIRouter, Depends, HTTPException
from cryptofolio.models.portfolio import AddAssetRequest, AddHoldingsRequest
from cryptofolio.models.errors import (
    AssetNotFound,
    BlankIdentifier,
    DuplicateAsset,
    EnrichmentFailed,
    InvalidAmount,
    LookupInFlight,
)
from cryptofolio.dependencies import get_tracker
from cryptofolio.services.tracker import CryptoTracker, user_message
from cryptofolio.services.view import Row
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])

STATUS_CODES = {
    BlankIdentifier: 400,
    InvalidAmount: 400,
    AssetNotFound: 404,
    DuplicateAsset: 409,
    LookupInFlight: 409,
    EnrichmentFailed: 502,
}

def raise_for_error(error):
    status_code = STATUS_CODES.get(type(error), 400)
    raise HTTPException(status_code=status_code, detail=user_message(error))

@router.get("")
async def get_portfolio(tracker: CryptoTracker = Depends(get_tracker)):
    return tracker.view.state()

@router.post("/refresh")
async def refresh_portfolio(tracker: CryptoTracker = Depends(get_tracker)):
    # a failed bootstrap stays retryable; after a successful one this is a no-op
    error = await tracker.start()
    if error is not None:
        logger.info(f"Refresh did not load the portfolio: {error}")
    return tracker.view.state()

@router.post("/assets")
async def add_asset(request: AddAssetRequest, tracker: CryptoTracker = Depends(get_tracker)):
    result = await tracker.submit_new_asset(request.identifier)
    if not result.ok:
        logger.info(f"Add asset rejected: {result.error}")
        raise_for_error(result.error)
    snapshot = tracker.store.snapshot()
    return {"asset": Row.from_asset(result.value, snapshot.exchange_rate).to_dict()}

@router.post("/assets/{symbol}/holdings")
async def add_holdings(symbol: str, request: AddHoldingsRequest, tracker: CryptoTracker = Depends(get_tracker)):
    result = tracker.add_holdings(symbol, request.amount)
    if not result.ok:
        logger.info(f"Add holdings rejected for {symbol}: {result.error}")
        raise_for_error(result.error)
    snapshot = tracker.store.snapshot()
    return {"asset": Row.from_asset(result.value, snapshot.exchange_rate).to_dict()}
