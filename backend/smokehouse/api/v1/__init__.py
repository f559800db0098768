from fastapi import APIRouter

from smokehouse.api.v1 import cart
from smokehouse.api.v1 import catalog
from smokehouse.api.v1 import orders
from smokehouse.api.v1 import tips

api_router = APIRouter()

api_router.include_router(catalog.router)
api_router.include_router(cart.router)
api_router.include_router(orders.router)
api_router.include_router(tips.router)


@api_router.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
