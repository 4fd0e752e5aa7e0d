"""Router API v1 — agrega todos os sub-routers."""

from fastapi import APIRouter

from fieldsurvey.presentation.api.v1.endpoints.tickets import router as tickets_router

api_v1_router = APIRouter()

api_v1_router.include_router(tickets_router, prefix="/tickets", tags=["🎫 Tickets"])
