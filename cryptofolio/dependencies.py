# cryptofolio/dependencies.py
from fastapi import HTTPException, Request
from cryptofolio.services.tracker import CryptoTracker

async def get_tracker(request: Request) -> CryptoTracker:
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Portfolio is not ready yet")
    return tracker
