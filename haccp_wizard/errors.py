"""Exception types shared by the wizard core and its collaborators."""


class WizardError(Exception):
    """Base class for errors surfaced to API callers."""


class GenerationError(WizardError):
    """The content generator failed or returned an unusable payload."""


class ExportError(WizardError):
    """A DOCX/PDF export could not be produced."""


class UnknownActionError(WizardError, ValueError):
    def __init__(self, action_type: str):
        super().__init__(f"Unknown action type: {action_type}")
        self.action_type = action_type


class ActionPayloadError(WizardError, ValueError):
    """An action was dispatched with a missing or malformed payload."""


class SessionNotFoundError(WizardError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class ResultNotReadyError(WizardError):
    """An export was requested before any documentation was generated."""
