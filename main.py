import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from hackteams.config import LOG_LEVEL
from hackteams.database import create_db_and_tables
from hackteams.errors import install_error_handlers
from hackteams.routers import auth, teams, users

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables
    create_db_and_tables()
    yield
    # Shutdown: cleanup if needed


# Initialize FastAPI app
app = FastAPI(
    title="Hackathon Teams API",
    description="Form hackathon teams and manage member profiles",
    version="1.0.0",
    lifespan=lifespan
)

install_error_handlers(app)

app.include_router(auth.router)
app.include_router(teams.router)
app.include_router(users.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
