"""
Corpus models for agreements and their extracted clauses.
"""

from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, Enum):
    """Risk rating of a clause from the customer's point of view."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Favorability(str, Enum):
    """Which side a clause favors."""

    PROVIDER_FAVORABLE = "provider-favorable"
    NEUTRAL = "neutral"
    CUSTOMER_FAVORABLE = "customer-favorable"


def _new_id() -> str:
    return str(uuid4())


class AgreementItem(BaseModel):
    """
    An agreement in the corpus.

    The embedding is an aggregate over the agreement text, produced by the
    external embedding service. ``x`` and ``y`` are written by each analysis run.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=_new_id)
    name: str
    provider: str = ""
    embedding: list[float] = Field(default_factory=list)

    # Derived
    x: float | None = None
    y: float | None = None


class ClauseItem(BaseModel):
    """
    A single clause extracted from an agreement.

    Derived fields (``x``, ``y``, ``cluster_id``, ``is_outlier``) are
    overwritten wholesale on every analysis run.
    """

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, validate_default=True)

    id: str = Field(default_factory=_new_id)
    agreement_id: str
    agreement_name: str = ""
    clause_type: str = Field(..., description="Clause category, e.g. Limitation of Liability")
    title: str = ""
    text: str = ""
    summary: str = ""
    risk_level: RiskLevel = RiskLevel.MEDIUM
    favorability: Favorability = Favorability.NEUTRAL
    embedding: list[float] = Field(default_factory=list)

    # Derived
    x: float | None = None
    y: float | None = None
    cluster_id: int | None = None
    is_outlier: bool | None = None


class ClausePatch(BaseModel):
    """Per-clause writeback produced by an analysis run."""

    clause_id: str
    x: float
    y: float
    cluster_id: int
    is_outlier: bool


class AgreementPatch(BaseModel):
    """Per-agreement writeback produced by an analysis run."""

    agreement_id: str
    x: float
    y: float


class AgreementView(BaseModel):
    """Agreement as listed for the map views, without its embedding."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    provider: str = ""
    x: float | None = None
    y: float | None = None


class ClauseView(BaseModel):
    """Clause as listed for the map and explorer views, without its embedding."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    agreement_id: str
    agreement_name: str = ""
    clause_type: str
    title: str = ""
    text: str = ""
    summary: str = ""
    risk_level: str
    favorability: str
    x: float | None = None
    y: float | None = None
    cluster_id: int | None = None
    is_outlier: bool | None = None
