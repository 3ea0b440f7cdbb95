"""
Concept Map Models

Pydantic models for concepts and the connections between them.
"""

from pydantic import BaseModel, Field

# ========================================
# CONCEPT MODELS
# ========================================


class ConceptBase(BaseModel):
    """Base fields for a concept"""

    name: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    position_x: float = 0.0
    position_y: float = 0.0


class ConceptCreate(ConceptBase):
    """Request model for creating a concept"""

    user_id: str


class Concept(ConceptBase):
    """Full concept model with all fields"""

    id: int
    user_id: str
    created_at: str | None = None
    updated_at: str | None = None


class ConceptUpdate(BaseModel):
    """Request model for updating a concept; omitted fields are kept"""

    user_id: str
    name: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    position_x: float | None = None
    position_y: float | None = None


# ========================================
# CONNECTION MODELS
# ========================================


class ConnectionCreate(BaseModel):
    user_id: str
    from_concept_id: int
    to_concept_id: int


class ConceptConnection(BaseModel):
    id: int
    user_id: str
    from_concept_id: int
    to_concept_id: int
    created_at: str | None = None


class ConceptMap(BaseModel):
    """Everything needed to draw a user's map"""

    concepts: list[Concept]
    connections: list[ConceptConnection]
