from fastapi import APIRouter
from catering.api.v1.routes.auth import router as auth_router
from catering.api.v1.routes.public import router as public_router
from catering.api.v1.routes.bookings import router as bookings_router
from catering.api.v1.routes.staff import router as staff_router
from catering.api.v1.routes.manager import router as manager_router
from catering.api.v1.routes.accounting import router as accounting_router
from catering.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(public_router)
api_router.include_router(bookings_router)
api_router.include_router(staff_router)
api_router.include_router(manager_router)
api_router.include_router(accounting_router)
api_router.include_router(admin_router)
