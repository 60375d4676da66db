"""
Cricbook - Cricket Social Network API
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cricbook import __version__
from cricbook.config import settings
from cricbook.database import init_db
from cricbook.logging_config import setup_logging
from cricbook.api.errors import register_error_handlers
from cricbook.api.auth import router as auth_router
from cricbook.api.users import router as users_router
from cricbook.api.posts import router as posts_router
from cricbook.api.matches import router as matches_router
from cricbook.api.commentary import router as commentary_router

# Initialize FastAPI app
app = FastAPI(
    title="Cricbook",
    description="Cricket social network with live ball-by-ball commentary",
    version=__version__,
)

# CORS origins - local frontends plus any configured via CORS_ORIGINS (comma-separated)
origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
origins.extend(o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip())

# CORS middleware for mobile/web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(posts_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(commentary_router, prefix="/api")


@app.on_event("startup")
def startup_event():
    """Configure logging and initialize database on startup"""
    setup_logging()
    init_db()


@app.get("/")
def root():
    """Health check endpoint"""
    return {
        "name": "Cricbook API",
        "version": __version__,
        "status": "running",
    }


@app.get("/api/health")
def health_check():
    """API health check"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
