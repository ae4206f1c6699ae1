"""
Main FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from invoicer.api import drafts, master_data, shipments, sync
from invoicer.db.database import engine, Base
from invoicer import models  # noqa: F401  registers tables on Base

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Create local database tables; mirror tables are created on first remote contact
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Shipment Invoicer",
    description="Shipment invoices with offline-first storage and manual sync",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # React dev servers
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(shipments.router, prefix="/api/shipments", tags=["shipments"])
app.include_router(drafts.router, prefix="/api/drafts", tags=["drafts"])
app.include_router(master_data.router, prefix="/api/master-data")
app.include_router(sync.router, prefix="/api/sync", tags=["sync"])


@app.get("/")
async def root():
    return {"message": "Shipment Invoicer API"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
