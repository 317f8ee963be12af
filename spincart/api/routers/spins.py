# spincart/api/routers/spins.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from spincart.api.deps import get_lock_service
from spincart.data.database import get_db
from spincart.domain.schemas import (
    PlaySpinIn,
    PlaySpinOut,
    SpinDefinitionIn,
    SpinDefinitionOut,
    SpinDefinitionUpdate,
)
from spincart.services.lock_service import LockService
from spincart.services.spin_service import SpinService

router = APIRouter(prefix="/spins", tags=["spins"])


def get_service(db: Session, lock_service: LockService):
    return SpinService(db=db, lock_service=lock_service)


@router.get("/", response_model=List[SpinDefinitionOut])
def list_spins(
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).list_spin_definitions(active_only=active_only)


@router.post("/", response_model=SpinDefinitionOut, status_code=201)
def create_spin(
    payload: SpinDefinitionIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).create_spin_definition(**payload.model_dump())


@router.post("/play", response_model=PlaySpinOut)
def play_spin(
    payload: PlaySpinIn,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).play_spin(payload.cart_id)


@router.get("/{definition_id}", response_model=SpinDefinitionOut)
def get_spin(
    definition_id: int,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).get_spin_definition(definition_id)


@router.put("/{definition_id}", response_model=SpinDefinitionOut)
def update_spin(
    definition_id: int,
    payload: SpinDefinitionUpdate,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    return get_service(db, lock_service).update_spin_definition(
        definition_id, **payload.model_dump(exclude_unset=True)
    )


@router.delete("/{definition_id}", status_code=204)
def delete_spin(
    definition_id: int,
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    get_service(db, lock_service).delete_spin_definition(definition_id)
