# src/sitedash/schemas/resource.py

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from .base import APIModel, EntityModel, UpdateModel


class ResourceType(str, Enum):
    LABOR = "labor"
    EQUIPMENT = "equipment"
    MATERIAL = "material"


class ResourceAvailability(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in-use"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class Resource(EntityModel):
    name: str
    type: ResourceType
    category: str = ""
    availability: ResourceAvailability = ResourceAvailability.AVAILABLE
    cost: float = Field(0, ge=0)
    unit: str = ""
    quantity: float = Field(0, ge=0)
    location: str = ""
    assigned_projects: List[str] = Field(default_factory=list)
    specifications: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResourceCreate(APIModel):
    name: str = Field(..., min_length=1)
    type: ResourceType
    category: str = ""
    availability: ResourceAvailability = ResourceAvailability.AVAILABLE
    cost: float = Field(0, ge=0)
    unit: str = ""
    quantity: float = Field(0, ge=0)
    location: str = ""
    assigned_projects: List[str] = Field(default_factory=list)
    specifications: Dict[str, str] = Field(default_factory=dict)


class ResourceUpdate(UpdateModel):
    id: str
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[ResourceType] = None
    category: Optional[str] = None
    availability: Optional[ResourceAvailability] = None
    cost: Optional[float] = Field(None, ge=0)
    unit: Optional[str] = None
    quantity: Optional[float] = Field(None, ge=0)
    location: Optional[str] = None
    assigned_projects: Optional[List[str]] = None
    specifications: Optional[Dict[str, str]] = None
