# File: backend/pdf_scraper/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from pdf_scraper.core.config import settings
from pdf_scraper.api.api import api_router
from pdf_scraper.db.database import engine
from pdf_scraper.db import models

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def init_db():
    """Create the resume and extraction history tables if they don't exist."""
    logger.info("Creating database tables if they don't exist...")
    models.Base.metadata.create_all(bind=engine)
    logger.info("Database initialization completed.")

# Initialize database
init_db()

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION
)

# Configure CORS with settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)

@app.get("/")
def read_root():
    return {"status": "PDF Resume Extraction API is running"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
