from fastapi import APIRouter

# Public: seat map and holds
from cinema.api.v1.public.screenings import router as screenings_router

# Public: payment provider callbacks
from cinema.api.v1.public.payments import router as payments_router

# Public: ticket refunds
from cinema.api.v1.public.tickets import router as tickets_router

# Admin
from cinema.api.v1.admin.halls import router as halls_router
from cinema.api.v1.admin.movies import router as movies_router
from cinema.api.v1.admin.screenings import router as admin_screenings_router
from cinema.api.v1.admin.holds import router as holds_router

api_router = APIRouter()

# --- Public ---
api_router.include_router(screenings_router)
api_router.include_router(payments_router)
api_router.include_router(tickets_router)

# --- Admin ---
api_router.include_router(halls_router)
api_router.include_router(movies_router)
api_router.include_router(admin_screenings_router)
api_router.include_router(holds_router)
