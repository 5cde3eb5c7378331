from fastapi import APIRouter

from backoffice.api.routers import admin, auth, contracts, customers, estates, invoices, maps, users

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(admin.router)
api_router.include_router(users.router)
api_router.include_router(customers.router)
api_router.include_router(estates.router)
api_router.include_router(maps.router)
api_router.include_router(invoices.router)
api_router.include_router(contracts.router)
api_router.include_router(contracts.options_router)
