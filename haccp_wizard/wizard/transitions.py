"""Pure state transitions for the wizard.

Every function takes a ``WizardState`` (or ``FormData``) and returns a new one;
inputs are never mutated. Form mutations are dispatched by name through
``ACTION_HANDLERS``; navigation and generation have dedicated transitions used
by ``WizardMachine``.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..errors import ActionPayloadError, UnknownActionError
from ..schemas.form_models import (
    ALLERGENS,
    DocType,
    Equipment,
    FormData,
    HACCPCategory,
    ProductionStage,
    RESULT_STEP,
    Supplier,
    TOTAL_STEPS,
    WizardState,
)
from ..schemas.result_models import AllergenSuggestion, GeneratedResult, HazardSuggestion
from .steps import is_step_valid
from .synchronizer import synchronize_form


class Action(BaseModel):
    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)


Handler = Callable[[FormData, Dict[str, Any]], FormData]

DETAIL_FIELDS = ("name", "address", "nip", "representative")
HAZARD_FIELDS = ("biological", "chemical", "physical")
CONDITION_FIELDS = ("temperature", "humidity", "ventilation")

# Labels the model tends to use for the Annex II groups. Checked in order,
# after the canonical labels, so "peanut" wins over the tree-nut entries.
ALLERGEN_ALIASES = {
    "peanut": "Peanuts",
    "groundnut": "Peanuts",
    "cereals": "Gluten",
    "wheat": "Gluten",
    "crustacean": "Crustaceans",
    "shellfish": "Crustaceans",
    "shrimp": "Crustaceans",
    "prawn": "Crustaceans",
    "crab": "Crustaceans",
    "lobster": "Crustaceans",
    "mollusc": "Molluscs",
    "mollusk": "Molluscs",
    "mussel": "Molluscs",
    "oyster": "Molluscs",
    "squid": "Molluscs",
    "egg": "Eggs",
    "soybeans": "Soy",
    "soya": "Soy",
    "lactose": "Milk",
    "dairy": "Milk",
    "tree nut": "Tree nuts",
    "nuts": "Tree nuts",
    "hazelnut": "Tree nuts",
    "walnut": "Tree nuts",
    "almond": "Tree nuts",
    "cashew": "Tree nuts",
    "pistachio": "Tree nuts",
    "sulphite": "Sulphites",
    "sulfite": "Sulphites",
    "sulphur dioxide": "Sulphites",
    "sulfur dioxide": "Sulphites",
    "lupine": "Lupin",
}


def _require(payload: Dict[str, Any], key: str) -> Any:
    if key not in payload or payload[key] is None:
        raise ActionPayloadError(f"Missing payload field '{key}'")
    return payload[key]


def _require_text(payload: Dict[str, Any], key: str) -> str:
    value = _require(payload, key)
    if not isinstance(value, str):
        raise ActionPayloadError(f"Payload field '{key}' must be a string")
    return value


def _require_choice(payload: Dict[str, Any], key: str, choices: Iterable[str]) -> str:
    value = _require_text(payload, key)
    if value not in choices:
        raise ActionPayloadError(f"Payload field '{key}' must be one of {sorted(choices)}")
    return value


def _require_count(payload: Dict[str, Any]) -> int:
    value = payload.get("count", 1)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ActionPayloadError("Payload field 'count' must be a positive integer")
    return value


def _find_by_id(items: List[Any], item_id: str) -> Any:
    for item in items:
        if item.id == item_id:
            return item
    raise ActionPayloadError(f"No item with id '{item_id}'")


def normalize_allergen(label: str) -> Optional[str]:
    """Map a free-form allergen label onto one of ``ALLERGENS``."""
    text = label.strip().casefold()
    if not text:
        return None
    for known in ALLERGENS:
        if text == known.casefold():
            return known
    for known in ALLERGENS:
        if known.casefold() in text:
            return known
    for alias, known in ALLERGEN_ALIASES.items():
        if alias in text:
            return known
    return None


def _ordered_allergens(labels: Iterable[str]) -> List[str]:
    chosen = set(labels)
    return [a for a in ALLERGENS if a in chosen]


# --- form mutations ---------------------------------------------------------

def _set_category(form: FormData, payload: Dict[str, Any]) -> FormData:
    value = _require(payload, "category")
    try:
        form.category = HACCPCategory(value)
    except ValueError:
        raise ActionPayloadError(f"Unknown category: {value}")
    return form


def _set_doc_type(form: FormData, payload: Dict[str, Any]) -> FormData:
    value = _require(payload, "doc_type")
    try:
        form.doc_type = DocType(value)
    except ValueError:
        raise ActionPayloadError(f"Unknown document type: {value}")
    return form


def _set_detail(form: FormData, payload: Dict[str, Any]) -> FormData:
    field = _require_choice(payload, "field", DETAIL_FIELDS)
    setattr(form.details, field, _require_text(payload, "value"))
    return form


def _add_product(form: FormData, payload: Dict[str, Any]) -> FormData:
    name = _require_text(payload, "name").strip()
    if name and name not in form.products:
        form.products.append(name)
    return synchronize_form(form)


def _remove_product(form: FormData, payload: Dict[str, Any]) -> FormData:
    name = _require_text(payload, "name").strip()
    form.products = [p for p in form.products if p != name]
    return synchronize_form(form)


def _toggle_product(form: FormData, payload: Dict[str, Any]) -> FormData:
    name = _require_text(payload, "name").strip()
    if name in form.products:
        return _remove_product(form, payload)
    return _add_product(form, payload)


def _toggle_equipment(form: FormData, payload: Dict[str, Any]) -> FormData:
    name = _require_text(payload, "name").strip()
    if any(e.name == name for e in form.equipment):
        form.equipment = [e for e in form.equipment if e.name != name]
    elif name:
        form.equipment.append(Equipment(name=name, count=1))
    return form


def _add_equipment(form: FormData, payload: Dict[str, Any]) -> FormData:
    name = _require_text(payload, "name").strip()
    if name:
        form.equipment.append(Equipment(name=name, count=_require_count(payload)))
    return form


def _set_equipment_count(form: FormData, payload: Dict[str, Any]) -> FormData:
    item = _find_by_id(form.equipment, _require_text(payload, "id"))
    item.count = _require_count(payload)
    return form


def _remove_equipment(form: FormData, payload: Dict[str, Any]) -> FormData:
    item_id = _require_text(payload, "id")
    form.equipment = [e for e in form.equipment if e.id != item_id]
    return form


def _add_stage(form: FormData, payload: Dict[str, Any]) -> FormData:
    form.stages.append(ProductionStage(
        name=payload.get("name") or "",
        description=payload.get("description") or "",
    ))
    return form


def _update_stage(form: FormData, payload: Dict[str, Any]) -> FormData:
    stage = _find_by_id(form.stages, _require_text(payload, "id"))
    for field in ("name", "description"):
        if isinstance(payload.get(field), str):
            setattr(stage, field, payload[field])
    return form


def _remove_stage(form: FormData, payload: Dict[str, Any]) -> FormData:
    stage_id = _require_text(payload, "id")
    form.stages = [s for s in form.stages if s.id != stage_id]
    return form


def _add_supplier(form: FormData, payload: Dict[str, Any]) -> FormData:
    form.suppliers.append(Supplier(
        name=payload.get("name") or "",
        products=payload.get("products") or "",
        contact=payload.get("contact") or "",
    ))
    return form


def _update_supplier(form: FormData, payload: Dict[str, Any]) -> FormData:
    supplier = _find_by_id(form.suppliers, _require_text(payload, "id"))
    for field in ("name", "products", "contact"):
        if isinstance(payload.get(field), str):
            setattr(supplier, field, payload[field])
    return form


def _remove_supplier(form: FormData, payload: Dict[str, Any]) -> FormData:
    supplier_id = _require_text(payload, "id")
    form.suppliers = [s for s in form.suppliers if s.id != supplier_id]
    return form


def _toggle_allergen(form: FormData, payload: Dict[str, Any]) -> FormData:
    product = _require_text(payload, "product")
    allergen = _require_choice(payload, "allergen", ALLERGENS)
    for entry in form.allergen_matrix:
        if entry.product_name == product:
            current = set(entry.allergens)
            current.symmetric_difference_update({allergen})
            entry.allergens = _ordered_allergens(current)
            return form
    raise ActionPayloadError(f"Unknown product: {product}")


def _set_product_hazard(form: FormData, payload: Dict[str, Any]) -> FormData:
    product = _require_text(payload, "product")
    field = _require_choice(payload, "field", HAZARD_FIELDS)
    row = form.hazards_for(product)
    if row is None:
        raise ActionPayloadError(f"Unknown product: {product}")
    setattr(row, field, _require_text(payload, "value"))
    return form


def _set_working_condition(form: FormData, payload: Dict[str, Any]) -> FormData:
    field = _require_choice(payload, "field", CONDITION_FIELDS)
    setattr(form.working_conditions, field, _require_text(payload, "value"))
    return form


def _add_sop_block(form: FormData, payload: Dict[str, Any]) -> FormData:
    text = _require_text(payload, "text").strip()
    if text and text not in form.sop_blocks:
        form.sop_blocks.append(text)
    return form


def _remove_sop_block(form: FormData, payload: Dict[str, Any]) -> FormData:
    index = _require(payload, "index")
    if not isinstance(index, int) or not 0 <= index < len(form.sop_blocks):
        raise ActionPayloadError(f"No procedure block at index {index}")
    del form.sop_blocks[index]
    return form


ACTION_HANDLERS: Dict[str, Handler] = {
    "set_category": _set_category,
    "set_doc_type": _set_doc_type,
    "set_detail": _set_detail,
    "add_product": _add_product,
    "remove_product": _remove_product,
    "toggle_product": _toggle_product,
    "toggle_equipment": _toggle_equipment,
    "add_equipment": _add_equipment,
    "set_equipment_count": _set_equipment_count,
    "remove_equipment": _remove_equipment,
    "add_stage": _add_stage,
    "update_stage": _update_stage,
    "remove_stage": _remove_stage,
    "add_supplier": _add_supplier,
    "update_supplier": _update_supplier,
    "remove_supplier": _remove_supplier,
    "toggle_allergen": _toggle_allergen,
    "set_product_hazard": _set_product_hazard,
    "set_working_condition": _set_working_condition,
    "add_sop_block": _add_sop_block,
    "remove_sop_block": _remove_sop_block,
}


def _with_form(state: WizardState, form: FormData) -> WizardState:
    """Swap in edited form data.

    A generated result describes the data it was generated from, so any real
    change to the form drops it and export waits for a fresh generation.
    """
    if form == state.form_data:
        return state
    return state.model_copy(update={"form_data": form, "generated_result": None})


def apply_action(state: WizardState, action: Action) -> WizardState:
    """Apply one form mutation. Rejected while a generation is in flight."""
    if state.is_submitting:
        return state
    handler = ACTION_HANDLERS.get(action.type)
    if handler is None:
        raise UnknownActionError(action.type)
    try:
        form = handler(state.form_data.model_copy(deep=True), action.payload)
    except ValidationError as e:
        raise ActionPayloadError(str(e))
    return _with_form(state, form)


# Convenience wrappers for the named mutations used most often.

def add_product(state: WizardState, name: str) -> WizardState:
    return apply_action(state, Action(type="add_product", payload={"name": name}))


def remove_product(state: WizardState, name: str) -> WizardState:
    return apply_action(state, Action(type="remove_product", payload={"name": name}))


def set_field(state: WizardState, field: str, value: str) -> WizardState:
    """Set a business detail or working-condition field by name."""
    if field in DETAIL_FIELDS:
        return apply_action(state, Action(type="set_detail", payload={"field": field, "value": value}))
    if field in CONDITION_FIELDS:
        return apply_action(state, Action(type="set_working_condition", payload={"field": field, "value": value}))
    raise ActionPayloadError(f"Unknown field: {field}")


# --- suggestion merges ------------------------------------------------------

def apply_allergen_suggestions(state: WizardState, suggestions: List[AllergenSuggestion]) -> WizardState:
    if state.is_submitting or not suggestions:
        return state
    by_dish = {s.dish: s for s in suggestions}
    form = state.form_data.model_copy(deep=True)
    for entry in form.allergen_matrix:
        suggestion = by_dish.get(entry.product_name)
        if suggestion is None:
            continue
        labels = [normalize_allergen(a) for a in suggestion.allergens]
        entry.allergens = _ordered_allergens(a for a in labels if a)
    return _with_form(state, form)


def apply_hazard_suggestions(state: WizardState, suggestions: List[HazardSuggestion]) -> WizardState:
    if state.is_submitting or not suggestions:
        return state
    by_product = {s.product_name: s for s in suggestions}
    form = state.form_data.model_copy(deep=True)
    for row in form.product_hazards:
        suggestion = by_product.get(row.product_name)
        if suggestion is None:
            continue
        row.biological = suggestion.biological
        row.chemical = suggestion.chemical
        row.physical = suggestion.physical
    return _with_form(state, form)


# --- navigation ---------------------------------------------------------------

def next_step(state: WizardState) -> WizardState:
    """Move to the next interactive step if the current one is valid."""
    if state.is_submitting or state.current_step >= TOTAL_STEPS:
        return state
    if not is_step_valid(state.current_step, state.form_data):
        return state
    return state.model_copy(update={"current_step": state.current_step + 1})


def previous_step(state: WizardState) -> WizardState:
    if state.is_submitting:
        return state
    if state.current_step == RESULT_STEP:
        return state.model_copy(update={"current_step": TOTAL_STEPS})
    if state.current_step > 1:
        return state.model_copy(update={"current_step": state.current_step - 1})
    return state


def begin_generation(state: WizardState) -> WizardState:
    if state.is_submitting or state.current_step != TOTAL_STEPS:
        return state
    if not is_step_valid(TOTAL_STEPS, state.form_data):
        return state
    return state.model_copy(update={"is_submitting": True, "last_error": None})


def finish_generation(state: WizardState, result: GeneratedResult) -> WizardState:
    return state.model_copy(update={
        "is_submitting": False,
        "current_step": RESULT_STEP,
        "generated_result": result,
        "last_error": None,
    })


def fail_generation(state: WizardState, message: Optional[str]) -> WizardState:
    return state.model_copy(update={
        "is_submitting": False,
        "current_step": TOTAL_STEPS,
        "last_error": message,
    })
