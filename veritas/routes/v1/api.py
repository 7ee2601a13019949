from fastapi import APIRouter

from veritas.ledger.router import router as ledger_router
from veritas.verification.router import router as verification_router
from veritas.ask.router import router as ask_router
from veritas.chat.router import router as chat_router

api_router = APIRouter()

api_router.include_router(ledger_router)
api_router.include_router(verification_router)
api_router.include_router(ask_router)
api_router.include_router(chat_router)
