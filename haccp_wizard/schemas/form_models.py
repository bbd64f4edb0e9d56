"""Pydantic models for the data collected by the wizard.

- Use Enum for category and document type to prevent invalid values.
- Product-derived tables (allergen matrix, hazards) are ordered lists keyed by
  product name so row order survives serialization.
"""
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .result_models import GeneratedResult

# Wizard length; the generated-result view is TOTAL_STEPS + 1.
TOTAL_STEPS = 8
RESULT_STEP = TOTAL_STEPS + 1

# The 14 allergen groups of EU Regulation 1169/2011, Annex II.
ALLERGENS = (
    "Gluten",
    "Crustaceans",
    "Eggs",
    "Fish",
    "Peanuts",
    "Soy",
    "Milk",
    "Tree nuts",
    "Celery",
    "Mustard",
    "Sesame",
    "Sulphites",
    "Lupin",
    "Molluscs",
)

COMMON_EQUIPMENT = (
    "Dishwasher",
    "Combi oven",
    "Cold room",
    "Slicer",
    "Vacuum packer",
    "Steam sterilizer",
    "Deep fryer",
    "Gas range",
    "Double sink",
)


def new_id() -> str:
    return uuid.uuid4().hex[:9]


class HACCPCategory(str, Enum):
    gastronomy = "gastronomy"
    production = "production"
    logistics = "logistics"
    foodtruck = "foodtruck"


class DocType(str, Enum):
    haccp = "HACCP"
    ghp = "GHP"
    gmp = "GMP"
    haccp_ghp = "HACCP + GHP"


class BusinessDetails(BaseModel):
    name: str = ""
    address: str = ""
    nip: str = ""
    representative: str = ""


class Equipment(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    count: int = Field(default=1, ge=1)


class ProductionStage(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: str = ""


class Supplier(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    products: str = ""
    contact: str = ""


class WorkingConditions(BaseModel):
    temperature: str = ""
    humidity: str = ""
    ventilation: str = ""


class AllergenEntry(BaseModel):
    product_name: str
    allergens: List[str] = Field(default_factory=list)


class ProductHazard(BaseModel):
    product_name: str
    biological: str = ""
    chemical: str = ""
    physical: str = ""


class FormData(BaseModel):
    category: Optional[HACCPCategory] = None
    doc_type: Optional[DocType] = None
    details: BusinessDetails = Field(default_factory=BusinessDetails)
    products: List[str] = Field(default_factory=list)
    equipment: List[Equipment] = Field(default_factory=list)
    stages: List[ProductionStage] = Field(default_factory=list)
    suppliers: List[Supplier] = Field(default_factory=list)
    allergen_matrix: List[AllergenEntry] = Field(default_factory=list)
    product_hazards: List[ProductHazard] = Field(default_factory=list)
    working_conditions: WorkingConditions = Field(default_factory=WorkingConditions)
    sop_blocks: List[str] = Field(default_factory=list)

    def allergens_for(self, product_name: str) -> Optional[List[str]]:
        for entry in self.allergen_matrix:
            if entry.product_name == product_name:
                return entry.allergens
        return None

    def hazards_for(self, product_name: str) -> Optional[ProductHazard]:
        for row in self.product_hazards:
            if row.product_name == product_name:
                return row
        return None


class WizardPhase(str, Enum):
    step = "step"
    generating = "generating"
    result = "result"


class WizardState(BaseModel):
    current_step: int = Field(default=1, ge=1, le=RESULT_STEP)
    form_data: FormData = Field(default_factory=FormData)
    is_submitting: bool = False
    generated_result: Optional[GeneratedResult] = None
    last_error: Optional[str] = None

    @property
    def phase(self) -> WizardPhase:
        if self.is_submitting:
            return WizardPhase.generating
        if self.current_step == RESULT_STEP:
            return WizardPhase.result
        return WizardPhase.step
