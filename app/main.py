import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import LOG_LEVEL
from app.core.dependencies import get_portal_client
from app.routers import auth_router, forms_router, webhook_router, messages_router, bulletins_router, users_router
from app.services.portal_client import PortalClient

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(title="Band Office Communications API", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers; the webhook must come before the /{form_id} routes
app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(webhook_router.router, prefix="/api/forms", tags=["webhook"])
app.include_router(forms_router.router, prefix="/api/forms", tags=["forms"])
app.include_router(messages_router.router, prefix="/api/messages", tags=["messages"])
app.include_router(bulletins_router.router, prefix="/api/bulletins", tags=["bulletins"])
app.include_router(users_router.router, prefix="/api/users", tags=["users"])


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/portal/health")
def portal_health(portal: PortalClient = Depends(get_portal_client)):
    return {"portal_reachable": portal.check_connection()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
