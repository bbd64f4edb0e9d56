"""Pydantic models for API I/O."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .form_models import FormData, TOTAL_STEPS, WizardPhase
from .result_models import GeneratedResult


class SessionCreateRequest(BaseModel):
    session_id: Optional[str] = None


class SessionCreateResponse(BaseModel):
    session_id: str
    created: bool


class ActionRequest(BaseModel):
    type: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class WizardView(BaseModel):
    """Everything a client needs to render the current step."""
    session_id: str
    current_step: int
    total_steps: int = TOTAL_STEPS
    step_title: str
    phase: WizardPhase
    can_advance: bool
    can_go_back: bool
    field_errors: Dict[str, str] = Field(default_factory=dict)
    last_error: Optional[str] = None
    form_data: FormData
    generated_result: Optional[GeneratedResult] = None


class TransitionResponse(BaseModel):
    moved: bool
    state: WizardView


class SuggestionResponse(BaseModel):
    kind: str
    suggestions: List[Dict[str, Any]] = Field(default_factory=list)
    state: WizardView
