"""FastAPI application entry point for the data analysis tool.

This module initializes the FastAPI application and configures CORS
middleware.

To run locally:
    uvicorn main:app --reload
"""
from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()  # Load .env file before other imports

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router as api_router
from config import settings

app = FastAPI(
    title="CSV Data Analysis Tool",
    description="Sandboxed CSV analysis for tool-calling agents",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/healthcheck")
async def healthcheck() -> dict:
    """Health check endpoint.

    Returns:
        Dict with status "ok" if the service is running.
    """
    return {"status": "ok"}
