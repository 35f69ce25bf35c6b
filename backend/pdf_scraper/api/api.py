# File: backend/pdf_scraper/api/api.py
from fastapi import APIRouter

from pdf_scraper.api.endpoints import extract, resumes

api_router = APIRouter(prefix="/api")
api_router.include_router(resumes.router, prefix="/resumes", tags=["resumes"])
api_router.include_router(extract.router, prefix="/extract", tags=["extract"])
