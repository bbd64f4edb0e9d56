"""Wizard state machine: owns one session's state and sequences generation.

The machine is the single writer of its ``WizardState``. Each operation runs a
pure transition from ``transitions`` and commits the result; the only
suspension point is the awaited call to the content generator on the last
step.
"""
from typing import Callable, Dict, List, Optional, Protocol

from ..errors import GenerationError
from ..schemas.form_models import FormData, TOTAL_STEPS, WizardPhase, WizardState
from ..schemas.result_models import (
    AllergenSuggestion,
    DishSuggestion,
    GeneratedResult,
    HazardSuggestion,
    ProcedureBlock,
    StageSuggestion,
)
from ..utils.logger import get_logger
from . import transitions
from .steps import field_errors, get_step, is_step_valid

logger = get_logger()

GENERATION_ERROR_MESSAGE = (
    "An error occurred while generating the documentation. "
    "Please try again or check your internet connection."
)


class ContentGenerator(Protocol):
    """Remote content capability injected into the machine."""

    async def generate_documentation(self, form: FormData) -> GeneratedResult: ...

    async def suggest_dishes(self, category: str) -> List[DishSuggestion]: ...

    async def suggest_allergens(self, dishes: List[str]) -> List[AllergenSuggestion]: ...

    async def suggest_product_hazards(self, products: List[str]) -> List[HazardSuggestion]: ...

    async def suggest_stages(self, category: str) -> List[StageSuggestion]: ...

    async def suggest_procedures(self, category: str) -> List[ProcedureBlock]: ...


class WizardMachine:
    def __init__(
        self,
        generator: ContentGenerator,
        state: Optional[WizardState] = None,
        on_change: Optional[Callable[[WizardState], None]] = None,
    ):
        self.generator = generator
        self.on_change = on_change
        if state is not None and state.is_submitting:
            # A restored state cannot have a live call behind it.
            logger.info("[WIZARD] Discarding interrupted generation")
            state = transitions.fail_generation(state, None)
        self.state = state or WizardState()

    def _commit(self, state: WizardState) -> None:
        if state is self.state:
            return
        self.state = state
        if self.on_change:
            self.on_change(state)

    @property
    def phase(self) -> WizardPhase:
        return self.state.phase

    def can_advance(self) -> bool:
        if self.state.phase is not WizardPhase.step:
            return False
        return is_step_valid(self.state.current_step, self.state.form_data)

    def step_title(self) -> str:
        step = get_step(self.state.current_step)
        return step.title if step else "Generated documentation"

    def field_errors(self) -> Dict[str, str]:
        return field_errors(self.state.current_step, self.state.form_data)

    def dispatch(self, action: transitions.Action) -> bool:
        """Apply a form mutation. Returns False when it was rejected."""
        if self.state.is_submitting:
            logger.info(f"[WIZARD] Rejected '{action.type}' while generating")
            return False
        self._commit(transitions.apply_action(self.state, action))
        return True

    def back(self) -> bool:
        before = self.state
        self._commit(transitions.previous_step(before))
        return self.state is not before

    async def advance(self) -> bool:
        """Move forward one step, or run generation from the last step.

        Returns True when the state moved forward. A call made while a
        generation is in flight is rejected, not queued.
        """
        state = self.state
        if state.phase is not WizardPhase.step:
            return False
        if not is_step_valid(state.current_step, state.form_data):
            logger.info(f"[WIZARD] Step {state.current_step} is incomplete, not advancing")
            return False
        if state.current_step < TOTAL_STEPS:
            self._commit(transitions.next_step(state))
            logger.info(f"[WIZARD] Advanced to step {self.state.current_step}")
            return True
        return await self._generate()

    async def _generate(self) -> bool:
        # is_submitting is committed before the first await, so any re-entrant
        # advance() sees the generating phase.
        self._commit(transitions.begin_generation(self.state))
        logger.info("[WORKFLOW] Generating documentation...")
        try:
            result = await self.generator.generate_documentation(self.state.form_data)
            if result is None or result.is_empty():
                raise GenerationError("Empty response from the AI model.")
        except Exception as e:
            logger.error(f"[WORKFLOW] Documentation generation failed: {e}")
            self._commit(transitions.fail_generation(self.state, GENERATION_ERROR_MESSAGE))
            return False
        self._commit(transitions.finish_generation(self.state, result))
        logger.info("[WORKFLOW] Documentation generated")
        return True

    async def suggest_allergens(self) -> List[AllergenSuggestion]:
        products = list(self.state.form_data.products)
        if not products:
            return []
        suggestions = await self.generator.suggest_allergens(products)
        self._commit(transitions.apply_allergen_suggestions(self.state, suggestions))
        return suggestions

    async def suggest_product_hazards(self) -> List[HazardSuggestion]:
        products = list(self.state.form_data.products)
        if not products:
            return []
        suggestions = await self.generator.suggest_product_hazards(products)
        self._commit(transitions.apply_hazard_suggestions(self.state, suggestions))
        return suggestions
