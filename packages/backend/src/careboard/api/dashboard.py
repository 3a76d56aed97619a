"""Dashboard summary counters."""

from fastapi import APIRouter, Depends

from careboard.schemas.clinical import DashboardStats
from careboard.services.clinical_store import ClinicalStore, get_store

router = APIRouter()


@router.get("/dashboard/stats", response_model=DashboardStats)
async def dashboard_stats(store: ClinicalStore = Depends(get_store)):
    return store.dashboard_stats()
