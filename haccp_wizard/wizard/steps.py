"""Wizard step definitions and their gating predicates."""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..schemas.form_models import FormData, TOTAL_STEPS
from .validators import has_min_items, is_filled, is_valid_nip, nip_error_message

MIN_PRODUCTS = 1
MIN_EQUIPMENT = 1
MIN_STAGES = 3


@dataclass(frozen=True)
class Step:
    number: int
    title: str
    is_valid: Callable[[FormData], bool]


def _type_selected(form: FormData) -> bool:
    return form.category is not None and form.doc_type is not None


def _details_complete(form: FormData) -> bool:
    return is_filled(form.details.name) and is_valid_nip(form.details.nip)


def _has_products(form: FormData) -> bool:
    return has_min_items(form.products, MIN_PRODUCTS)


def _has_equipment(form: FormData) -> bool:
    return has_min_items(form.equipment, MIN_EQUIPMENT)


def _stages_complete(form: FormData) -> bool:
    if not has_min_items(form.stages, MIN_STAGES):
        return False
    return all(is_filled(s.name) and is_filled(s.description) for s in form.stages)


def _always(form: FormData) -> bool:
    return True


def _suppliers_named(form: FormData) -> bool:
    return all(is_filled(s.name) for s in form.suppliers)


def _conditions_complete(form: FormData) -> bool:
    wc = form.working_conditions
    return is_filled(wc.temperature) and is_filled(wc.humidity) and is_filled(wc.ventilation)


STEPS: List[Step] = [
    Step(1, "Business and document type", _type_selected),
    Step(2, "Business details", _details_complete),
    Step(3, "Menu and products", _has_products),
    Step(4, "Equipment inventory", _has_equipment),
    Step(5, "Production stages", _stages_complete),
    Step(6, "Hazards and allergens", _always),
    Step(7, "Suppliers", _suppliers_named),
    Step(8, "Working conditions", _conditions_complete),
]


def get_step(number: int) -> Optional[Step]:
    if 1 <= number <= TOTAL_STEPS:
        return STEPS[number - 1]
    return None


def is_step_valid(number: int, form: FormData) -> bool:
    step = get_step(number)
    return step is not None and step.is_valid(form)


def field_errors(number: int, form: FormData) -> Dict[str, str]:
    """Field-level messages to show next to the inputs of a step."""
    errors: Dict[str, str] = {}
    if number == 2:
        message = nip_error_message(form.details.nip)
        if message:
            errors["nip"] = message
    return errors
