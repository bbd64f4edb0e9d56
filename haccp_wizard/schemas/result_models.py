"""Models for the documentation payload returned by the content generator.

The model answers in camelCase JSON; fields are aliased so both the raw payload
and our own snake_case dumps validate.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GHPInstruction(_Payload):
    device: str = ""
    action: str = ""
    agent: str = ""
    frequency: str = ""


class CCPCard(_Payload):
    title: str = ""
    hazard: str = ""
    monitoring: str = ""
    critical_limits: str = Field(default="", alias="criticalLimits")
    corrective_actions: str = Field(default="", alias="correctiveActions")
    hazard_type: str = Field(default="", alias="hazardType")


class HazardBreakdown(_Payload):
    category_name: str = Field(default="", alias="categoryName")
    dish_name: str = Field(default="", alias="dishName")
    biological: List[str] = Field(default_factory=list)
    chemical: List[str] = Field(default_factory=list)
    physical: List[str] = Field(default_factory=list)


class ProcedureBlock(_Payload):
    title: str = ""
    content: str = ""


class GeneratedResult(_Payload):
    summary: str = ""
    ghp_instructions: List[GHPInstruction] = Field(default_factory=list, alias="ghpInstructions")
    ccps: List[CCPCard] = Field(default_factory=list)
    hazard_analysis: List[HazardBreakdown] = Field(default_factory=list, alias="hazardAnalysis")
    sops: List[ProcedureBlock] = Field(default_factory=list)
    flow_diagram: str = Field(default="", alias="flowDiagram")

    def is_empty(self) -> bool:
        """True when the payload carries none of the report sections."""
        return not (
            self.summary.strip()
            or self.ghp_instructions
            or self.ccps
            or self.hazard_analysis
            or self.sops
        )


# Suggestion payloads. Each is an optional enrichment; callers get an empty
# list when the model call fails.

class DishSuggestion(_Payload):
    name: str
    type: str = ""


class AllergenSuggestion(_Payload):
    dish: str
    allergens: List[str] = Field(default_factory=list)


class HazardSuggestion(_Payload):
    product_name: str = Field(alias="productName")
    biological: str = ""
    chemical: str = ""
    physical: str = ""


class StageSuggestion(_Payload):
    name: str
    description: str = ""
