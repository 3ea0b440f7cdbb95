"""
Concept map endpoints.

All operations are scoped to the requesting user; touching another user's
concept answers 404 so ids of other users are not disclosed.
"""

import logging

from fastapi import APIRouter, HTTPException

from ..models.concept_models import (
    Concept,
    ConceptConnection,
    ConceptCreate,
    ConceptMap,
    ConceptUpdate,
    ConnectionCreate,
)
from ..services.database_service import db_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/concepts", tags=["concepts"])


def _get_owned_concept(concept_id: int, user_id: str) -> dict:
    concept = db_service.concepts.get_concept(concept_id)
    if not concept or concept["user_id"] != user_id:
        raise HTTPException(status_code=404, detail=f"Concept {concept_id} not found")
    return concept


@router.get("/", response_model=ConceptMap)
async def get_concept_map(user_id: str):
    try:
        return ConceptMap(
            concepts=[Concept(**c) for c in db_service.concepts.list_concepts(user_id)],
            connections=[
                ConceptConnection(**c)
                for c in db_service.concepts.list_connections(user_id)
            ],
        )
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error retrieving concept map: {str(e)}"
        )


@router.post("/", response_model=Concept)
async def create_concept(request: ConceptCreate):
    try:
        concept_id = db_service.concepts.create_concept(
            user_id=request.user_id,
            name=request.name,
            description=request.description,
            position_x=request.position_x,
            position_y=request.position_y,
        )
        if concept_id is None:
            raise HTTPException(status_code=500, detail="Failed to create concept")
        return Concept(**db_service.concepts.get_concept(concept_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error creating concept: {str(e)}")


@router.put("/{concept_id}", response_model=Concept)
async def update_concept(concept_id: int, request: ConceptUpdate):
    try:
        _get_owned_concept(concept_id, request.user_id)
        if not db_service.concepts.update_concept(
            concept_id,
            name=request.name,
            description=request.description,
            position_x=request.position_x,
            position_y=request.position_y,
        ):
            raise HTTPException(status_code=500, detail="Failed to update concept")
        return Concept(**db_service.concepts.get_concept(concept_id))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating concept: {str(e)}")


@router.delete("/{concept_id}")
async def delete_concept(concept_id: int, user_id: str):
    try:
        _get_owned_concept(concept_id, user_id)
        if not db_service.concepts.delete_concept(concept_id):
            raise HTTPException(status_code=500, detail="Failed to delete concept")
        return {"message": "Concept deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting concept: {str(e)}")


@router.post("/connections", response_model=ConceptConnection)
async def create_connection(request: ConnectionCreate):
    try:
        _get_owned_concept(request.from_concept_id, request.user_id)
        _get_owned_concept(request.to_concept_id, request.user_id)

        connection_id = db_service.concepts.create_connection(
            request.user_id, request.from_concept_id, request.to_concept_id
        )
        if connection_id is None:
            raise HTTPException(status_code=409, detail="Connection already exists")

        connection = next(
            c
            for c in db_service.concepts.list_connections(request.user_id)
            if c["id"] == connection_id
        )
        return ConceptConnection(**connection)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error creating connection: {str(e)}"
        )


@router.delete("/connections/{from_concept_id}/{to_concept_id}")
async def delete_connection(from_concept_id: int, to_concept_id: int, user_id: str):
    try:
        if not db_service.concepts.delete_connection(
            user_id, from_concept_id, to_concept_id
        ):
            raise HTTPException(status_code=404, detail="Connection not found")
        return {"message": "Connection deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=500, detail=f"Error deleting connection: {str(e)}"
        )
