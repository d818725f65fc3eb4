from fastapi import APIRouter
from cmspro.api.v1.endpoints import auth, complaints, system

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(complaints.router, prefix="/complaints", tags=["Complaints"])
api_router.include_router(system.router, prefix="/system", tags=["System"])
