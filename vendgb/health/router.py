from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from vendgb.health import service as health_service
from vendgb.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root():
    return health_service.health_info()

@router.get("/supabase")
def health_supabase():
    info = health_service.health_supabase_info()
    return JSONResponse(info, status_code=200 if info["connect_ok"] else 503)

@router.get("/stripe")
def health_stripe(request: Request):
    info = health_service.health_stripe_info()
    info["rate_limit"] = rate_limit_health_info(request)
    return info
