from fastapi import APIRouter

from wastetrack.api.v1 import approval_levels, approvals, users, waste

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(approval_levels.router, prefix="/approval-levels", tags=["approval-levels"])
api_router.include_router(waste.router, prefix="/waste", tags=["waste"])
api_router.include_router(approvals.router, prefix="/approvals", tags=["approvals"])
