"""
api/routes/v1/complexes.py -- Public complex directory.

The registration screen lists complex names so a new resident can pick one
before they have an account. Complexes themselves are created with the
operator CLI (main.py add-complex).
"""

from fastapi import APIRouter, Request

from api.models import ComplexNameRow
from maintenance.store import MaintenanceStore

# Auth policy:
# - GET /api/v1/complex: public -- needed before registration
router = APIRouter()


@router.get("/complex", response_model=list[ComplexNameRow])
def list_complexes(request: Request) -> list[ComplexNameRow]:
    """Return the names of all complexes, alphabetically."""
    maintenance: MaintenanceStore = request.app.state.maintenance
    return [ComplexNameRow(name=n) for n in maintenance.list_complex_names()]
