"""
api/routes/v1/requisitions.py -- Maintenance requisition endpoints.

Routes:
  POST /api/v1/requisition   -- file a requisition (validated users only)
  GET  /api/v1/requisitions  -- list requisitions visible to the caller

Visibility: managerial roles (RESPONSAVEL_MANUTENCAO and above) see every
requisition of their complex; residents see only the ones they filed.

The complex of a new requisition always comes from the creator's user record.
Requisitions cannot be edited or deleted through the API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import RequisitionCreate, RequisitionCreatedResponse, RequisitionResponse
from auth.dependencies import get_current_identity, require_requisition_creator
from auth.errors import InvalidOrExpiredCredential, Internal, ValidationError
from auth.models import Identity
from auth.policy import can_view_all_requisitions
from auth.store import UserStore
from maintenance.models import Requisition
from maintenance.store import MaintenanceStore

logger = logging.getLogger("condodesk.api.requisitions")

# Auth policy:
# - POST /api/v1/requisition:  require_requisition_creator (any role but NAO_VALIDADO)
# - GET  /api/v1/requisitions: requires auth (get_current_identity)
router = APIRouter()


@router.post("/requisition", response_model=RequisitionCreatedResponse, status_code=201)
def create_requisition(
    request: Request,
    body: RequisitionCreate,
    identity: Identity = Depends(require_requisition_creator),
) -> RequisitionCreatedResponse:
    """File a new requisition in status pending under the creator's complex."""
    user_store: UserStore = request.app.state.user_store
    maintenance: MaintenanceStore = request.app.state.maintenance

    creator = user_store.get_by_id(identity.id)
    if creator is None:
        raise InvalidOrExpiredCredential()
    if creator.complex_id is None:
        raise ValidationError("Your account is not linked to a complex.")

    requisition_id = maintenance.create_requisition(
        Requisition(
            user_id=creator.id,
            complex_id=creator.complex_id,
            title=body.title,
            content=body.content,
            location=body.location,
            priority=body.priority,
            img_url=body.img_url,
        )
    )
    created = maintenance.get_requisition(requisition_id)
    if created is None:
        raise Internal("Requisition not found after write.")
    logger.info("user_id=%d filed requisition_id=%d", creator.id, requisition_id)
    return RequisitionCreatedResponse(
        message="Requisition created.",
        requisition=RequisitionResponse.from_requisition(created),
    )


@router.get("/requisitions", response_model=list[RequisitionResponse])
def list_requisitions(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> list[RequisitionResponse]:
    """Return requisitions visible to the caller, newest first."""
    user_store: UserStore = request.app.state.user_store
    maintenance: MaintenanceStore = request.app.state.maintenance

    if can_view_all_requisitions(identity.role):
        viewer = user_store.get_by_id(identity.id)
        if viewer is None:
            raise InvalidOrExpiredCredential()
        if viewer.complex_id is None:
            return []
        requisitions = maintenance.list_requisitions(complex_id=viewer.complex_id)
    else:
        requisitions = maintenance.list_requisitions_by_user(identity.id)
    return [RequisitionResponse.from_requisition(r) for r in requisitions]
