# cryptofolio/routers/root.py
from fastapi import APIRouter, Request

router = APIRouter(tags=["root"])

@router.get("/")
def read_root(request: Request):
    tracker = getattr(request.app.state, "tracker", None)
    return {
        "message": "Crypto Portfolio Tracker",
        "ready": bool(tracker and tracker.started),
        "portfolio": "/portfolio",
    }
