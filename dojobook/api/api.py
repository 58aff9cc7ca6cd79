from fastapi import (
    FastAPI,
)
from fastapi.middleware.cors import CORSMiddleware

from dojobook.api import booking, check_in, notifications, sessions
from dojobook.schemas.config.config import read_app_config

api = FastAPI(title="dojobook")

api.add_middleware(
    CORSMiddleware,
    allow_origins=read_app_config().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api.include_router(booking.router, tags=["booking"])
api.include_router(check_in.router, tags=["attendance"])
api.include_router(sessions.router, tags=["sessions"])
api.include_router(notifications.router, tags=["notifications"])
