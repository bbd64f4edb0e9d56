"""Controller / Orchestrator for wizard sessions.

Owns one ``WizardMachine`` per live session, persists every committed state
through the ``SessionManager``, and routes suggestion and export requests to
their collaborators.
"""
import uuid
from typing import Dict, List, Optional, Tuple

from ..errors import ResultNotReadyError, SessionNotFoundError, WizardError
from ..schemas.form_models import WizardPhase
from ..schemas.io_models import WizardView
from ..utils.logger import get_logger
from ..utils.security import mask_pii
from ..wizard.machine import ContentGenerator, WizardMachine
from ..wizard.transitions import Action
from .content_service import GeminiContentService
from .export import EXPORTERS
from .session import SessionManager

logger = get_logger()

SUGGESTION_KINDS = ("dishes", "allergens", "hazards", "stages", "procedures")


class Controller:
    def __init__(self, content_service: Optional[ContentGenerator] = None,
                 session_manager: Optional[SessionManager] = None):
        self.content_service = content_service or GeminiContentService()
        self.session_manager = session_manager or SessionManager()
        self.machines: Dict[str, WizardMachine] = {}

    def _persist(self, session_id: str):
        def save(state):
            # Commits from a machine that was dropped (deleted or expired
            # session) must not write the session back.
            machine = self.machines.get(session_id)
            if machine is None or machine.state is not state:
                logger.info(f"[WORKFLOW] Session {session_id} is gone, discarding state")
                return
            self.session_manager.save_state(session_id, state)
        return save

    def _prune(self):
        """Drop cached machines whose session has expired from the store."""
        for session_id, machine in list(self.machines.items()):
            if machine.phase is WizardPhase.generating:
                continue
            if not self.session_manager.exists(session_id):
                del self.machines[session_id]

    def create_session(self, session_id: Optional[str] = None) -> Tuple[str, bool]:
        self._prune()
        session_id = session_id or str(uuid.uuid4())
        created = self.session_manager.create_session(session_id)
        logger.info(f"[WORKFLOW] Session {session_id} {'created' if created else 'already exists'}")
        return session_id, created

    def get_machine(self, session_id: str) -> WizardMachine:
        machine = self.machines.get(session_id)
        if machine is not None:
            if machine.phase is WizardPhase.generating or self.session_manager.exists(session_id):
                return machine
            logger.info(f"[WORKFLOW] Session {session_id} expired from the store")
            del self.machines[session_id]
            raise SessionNotFoundError(session_id)
        state = self.session_manager.get_state(session_id)
        if state is None:
            raise SessionNotFoundError(session_id)
        machine = WizardMachine(self.content_service, state, on_change=self._persist(session_id))
        if machine.state is not state:
            self.session_manager.save_state(session_id, machine.state)
        self.machines[session_id] = machine
        return machine

    def delete_session(self, session_id: str) -> bool:
        self.machines.pop(session_id, None)
        return self.session_manager.delete_session(session_id)

    def view(self, session_id: str) -> WizardView:
        machine = self.get_machine(session_id)
        state = machine.state
        return WizardView(
            session_id=session_id,
            current_step=state.current_step,
            step_title=machine.step_title(),
            phase=state.phase,
            can_advance=machine.can_advance(),
            can_go_back=state.phase is not WizardPhase.generating and state.current_step > 1,
            field_errors=machine.field_errors(),
            last_error=state.last_error,
            form_data=state.form_data,
            generated_result=state.generated_result,
        )

    def dispatch(self, session_id: str, action: Action) -> bool:
        machine = self.get_machine(session_id)
        logger.info(mask_pii(f"[WORKFLOW] Session {session_id} action {action.type} {action.payload}"))
        return machine.dispatch(action)

    def is_generating(self, session_id: str) -> bool:
        return self.get_machine(session_id).phase is WizardPhase.generating

    async def advance(self, session_id: str) -> bool:
        return await self.get_machine(session_id).advance()

    def back(self, session_id: str) -> bool:
        return self.get_machine(session_id).back()

    async def suggest(self, session_id: str, kind: str) -> List[dict]:
        """Run one suggestion call. Allergen and hazard suggestions are merged into the state."""
        if kind not in SUGGESTION_KINDS:
            raise WizardError(f"Unknown suggestion kind: {kind}")
        machine = self.get_machine(session_id)
        form = machine.state.form_data
        category = form.category.value if form.category else None
        logger.info(f"[WORKFLOW] Session {session_id} suggestion '{kind}'")

        if kind == "allergens":
            items = await machine.suggest_allergens()
        elif kind == "hazards":
            items = await machine.suggest_product_hazards()
        elif not category:
            items = []
        elif kind == "dishes":
            items = await self.content_service.suggest_dishes(category)
        elif kind == "stages":
            items = await self.content_service.suggest_stages(category)
        else:
            items = await self.content_service.suggest_procedures(category)
        return [item.model_dump() for item in items]

    def export(self, session_id: str, fmt: str) -> Tuple[bytes, str, str]:
        """Render the generated documentation; returns (content, filename, media type)."""
        exporter_cls = EXPORTERS.get(fmt)
        if exporter_cls is None:
            raise WizardError(f"Unsupported export format: {fmt}")
        state = self.get_machine(session_id).state
        if state.generated_result is None:
            raise ResultNotReadyError("No generated documentation to export yet.")
        exporter = exporter_cls()
        content = exporter.render(state.form_data, state.generated_result)
        logger.info(f"[WORKFLOW] Session {session_id} exported {fmt} ({len(content)} bytes)")
        return content, exporter.filename(state.form_data), exporter.media_type
