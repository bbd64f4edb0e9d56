#!/usr/bin/env python3
"""
Prompt builder module for the HACCP wizard.

This module turns the collected form data into prompts for the LLM and holds
the response schemas each prompt is paired with.
"""

from typing import Any, Dict, List
from .config import Config
from ..schemas.form_models import ALLERGENS, FormData


def _string() -> Dict[str, Any]:
    return {"type": "STRING"}


def _strings() -> Dict[str, Any]:
    return {"type": "ARRAY", "items": _string()}


def _object(**properties: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "OBJECT", "properties": properties}


def _list_of(**properties: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "ARRAY", "items": _object(**properties)}


DOCUMENTATION_SCHEMA = _object(
    summary=_string(),
    ghpInstructions=_list_of(device=_string(), action=_string(), agent=_string(), frequency=_string()),
    ccps=_list_of(
        title=_string(),
        hazard=_string(),
        monitoring=_string(),
        criticalLimits=_string(),
        correctiveActions=_string(),
        hazardType=_string(),
    ),
    hazardAnalysis=_list_of(
        categoryName=_string(),
        dishName=_string(),
        biological=_strings(),
        chemical=_strings(),
        physical=_strings(),
    ),
    sops=_list_of(title=_string(), content=_string()),
    flowDiagram=_string(),
)

DISHES_SCHEMA = _object(dishes=_list_of(name=_string(), type=_string()))
ALLERGENS_SCHEMA = _object(suggestions=_list_of(dish=_string(), allergens=_strings()))
HAZARDS_SCHEMA = _object(hazards=_list_of(
    productName=_string(), biological=_string(), chemical=_string(), physical=_string()
))
STAGES_SCHEMA = _object(stages=_list_of(name=_string(), description=_string()))
PROCEDURES_SCHEMA = _object(sops=_list_of(title=_string(), content=_string()))


class PromptBuilder:
    """Builds prompts for the documentation and suggestion calls."""

    def __init__(self, language: str = None):
        """Initialize the prompt builder."""
        self.language = language or Config.DOCUMENT_LANGUAGE
        self.system_prompt = (
            "You are an expert in HACCP, GHP and GMP food-safety systems "
            "under Regulation (EC) No 852/2004 and national sanitary inspection practice."
        )

    def _lines(self, items: List[str]) -> str:
        return ", ".join(i for i in items if i) or "none"

    def build_documentation_prompt(self, form: FormData) -> str:
        """
        Build the prompt for the full documentation.

        Args:
            form: Collected wizard data

        Returns:
            Prompt text
        """
        details = form.details
        category = form.category.value if form.category else "unspecified"
        doc_type = form.doc_type.value if form.doc_type else "HACCP"
        wc = form.working_conditions

        allergens = "; ".join(
            f"{e.product_name}: {', '.join(e.allergens) or 'none'}" for e in form.allergen_matrix
        ) or "none"
        hazards = "; ".join(
            f"{h.product_name}: B[{h.biological}], C[{h.chemical}], P[{h.physical}]"
            for h in form.product_hazards
        ) or "none"

        return f"""{self.system_prompt}
Prepare professional sanitary documentation for the business: {details.name}.
Address: {details.address or 'not provided'}
Responsible person: {details.representative or 'not provided'}
Document type: {doc_type}
Sector: {category}
Technical equipment: {self._lines([f"{e.name} x{e.count}" for e in form.equipment])}
Suppliers: {self._lines([f"{s.name} (products: {s.products})" for s in form.suppliers])}
Production process stages: {self._lines([f"{s.name} ({s.description})" for s in form.stages])}
Products: {self._lines(form.products)}
Allergens per product: {allergens}
Identified hazards (biological, chemical, physical): {hazards}
Working conditions: temperature {wc.temperature}, humidity {wc.humidity}, ventilation {wc.ventilation}
Procedures to include: {self._lines(form.sop_blocks)}

Write all text in {self.language}.
Technical response requirements:
Return ONLY valid JSON with the requested structure."""

    def build_dishes_prompt(self, category: str) -> str:
        return (
            f"Suggest a list of 30 typical dishes or products for the sector: {category}. "
            f"Assign each one a type: meat, dairy, vegetarian or other. Write names in {self.language}."
        )

    def build_allergens_prompt(self, dishes: List[str]) -> str:
        return (
            f"You are a food quality expert. For the dishes: {', '.join(dishes)}, "
            f"list ALL possible allergens from the 14 main groups of Regulation (EU) No 1169/2011. "
            f"Use exactly these labels: {', '.join(ALLERGENS)}. "
            f"Repeat each dish name exactly as given."
        )

    def build_hazards_prompt(self, products: List[str]) -> str:
        return (
            f"You are a food safety expert. For the products: {', '.join(products)}, "
            f"propose potential biological, chemical and physical hazards. "
            f"Repeat each product name exactly as given. Write in {self.language}."
        )

    def build_stages_prompt(self, category: str) -> str:
        return (
            f"Propose the standard production process stages for the sector: {category}. "
            f"Give each stage a short description. Write in {self.language}."
        )

    def build_procedures_prompt(self, category: str) -> str:
        return (
            f"Generate a list of 6 key standard operating procedures (e.g. hand washing, "
            f"receiving deliveries) for the sector: {category}. Write in {self.language}."
        )
