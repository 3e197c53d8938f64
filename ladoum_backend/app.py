import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .routes import health, auth, reproduction, tasks

logger = logging.getLogger(__name__)

app = FastAPI(title="Ladoum Farm Backend", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(reproduction.router)
app.include_router(tasks.router)

logger.info("Ladoum farm backend routes registered")
