import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reward_points import config
from reward_points.db import engine, Base

from reward_points.models.user import User
from reward_points.models.points_account import PointsAccount
from reward_points.models.point_transaction import PointTransaction
from reward_points.models.product import Product, ProductPrice
from reward_points.models.inventory_item import InventoryItem
from reward_points.models.redemption import Redemption
from reward_points.models.event import Event
from reward_points.models.event_award import EventAward
from reward_points.models.event_participant import EventParticipant
from reward_points.models.admin_budget import AdminBudget

from reward_points.routes.points import router as points_router
from reward_points.routes.redemptions import router as redemptions_router
from reward_points.routes.events import router as events_router
from reward_points.routes.admin import router as admin_router
from reward_points.routes.inventory import router as inventory_router
from reward_points.routes.products import router as products_router
from reward_points.services.errors import RewardPointsError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Reward Points")

# ─── CORS ─────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RewardPointsError)
async def handle_reward_points_error(request: Request, exc: RewardPointsError):
    if exc.status_code >= 500:
        logger.error("request failed", extra={"path": request.url.path, "error": exc.code})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def startup():
    Base.metadata.create_all(bind=engine)


app.include_router(points_router)
app.include_router(redemptions_router)
app.include_router(events_router)
app.include_router(admin_router)
app.include_router(inventory_router)
app.include_router(products_router)


APP_IMPORT_PATH = "reward_points.main:app"


@app.get("/")
def read_root():
    return {"message": "Reward Points is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(APP_IMPORT_PATH, host="127.0.0.1", port=8001, reload=True)
