"""
HACCP-WIZARD — System Documentation
===================================

This module-style README documents the architecture, components, data flows,
and operational practices of the HACCP documentation wizard. It can be
imported to inspect sections programmatically or printed for reading.

How to use this file
--------------------
- View in an editor for structured reading.
- Run `python README.py` to print the outline.
- Import `README` in tools or scripts to surface sections.

Table of Contents
-----------------
1. System Overview
2. Architecture
3. Backend Components
4. Wizard Steps
5. Derived Tables
6. Generation Flow
7. Sessions & Persistence
8. Export
9. Configuration & Environment
10. Testing Strategy
11. Security & PII Handling
12. Deployment
13. Troubleshooting

"""

from __future__ import annotations

import textwrap


def section(title: str, body: str) -> str:
    return f"\n{title}\n{'-' * len(title)}\n{body.strip()}\n"


SYSTEM_OVERVIEW = section(
    "1. System Overview",
    """
    HACCP-WIZARD guides a food business owner through an eight-step form
    (business type, details, products, equipment, stages, hazards/allergens,
    suppliers, working conditions) and asks Gemini to write HACCP/GHP/GMP
    documentation from the collected data. The result can be downloaded as
    DOCX or PDF.
    """,
)


ARCHITECTURE = section(
    "2. Architecture",
    """
    - API: FastAPI app exposing `/session/...` endpoints (actions, next, back,
      suggest, export).
    - Controller: one `WizardMachine` per session, persisted on every commit.
    - Wizard core: pure transitions over a pydantic `WizardState`.
    - Content: `GeminiContentService` over a REST `GenerationClient`.
    - Storage: Redis snapshots with an in-memory fallback.
    """,
)


BACKEND_COMPONENTS = section(
    "3. Backend Components",
    """
    haccp_wizard/app/
      - main.py: FastAPI app setup, routes, CORS, error mapping.
      - controller.py: Session -> machine routing, suggestions, export.
      - config.py: Env-driven configuration (keys, models, Redis, fonts).
      - generate.py: Gemini client with JSON response schema and fallback model.
      - prompt_builder.py: Prompts and response schemas.
      - content_service.py: Async content capability used by the wizard.
      - session.py: Redis / in-memory state storage.
      - export.py: python-docx and fpdf2 exporters.

    haccp_wizard/wizard/
      - validators.py: NIP and presence checks.
      - steps.py: Step titles and gating predicates.
      - synchronizer.py: Product-keyed table reconciliation.
      - transitions.py: Form actions, suggestion merges, navigation.
      - machine.py: Single-writer state machine with single-flight generation.
    """,
)


WIZARD_STEPS = section(
    "4. Wizard Steps",
    """
    1) Business and document type   - category and doc type chosen
    2) Business details             - name present, NIP exactly 10 digits
    3) Menu and products            - at least one product
    4) Equipment inventory          - at least one device
    5) Production stages            - three or more, each named and described
    6) Hazards and allergens        - optional
    7) Suppliers                    - optional, but listed suppliers need a name
    8) Working conditions           - temperature, humidity, ventilation
    Forward moves are gated; back moves never are.
    """,
)


DERIVED_TABLES = section(
    "5. Derived Tables",
    """
    - The allergen matrix and the product hazard table hold one row per product.
    - Adding a product appends an empty row; removing it drops the row.
    - Other rows keep their values and order.
    - Renaming is remove + add, so the renamed product's row starts empty.
    """,
)


GENERATION_FLOW = section(
    "6. Generation Flow",
    """
    - "Next" on step 8 sets `is_submitting` before calling Gemini.
    - While generating, actions, back and next are rejected (HTTP 409 for
      actions and next).
    - Success moves to the result view; failure returns to step 8 with a
      retryable error message. Empty payloads count as failures.
    - Editing the form after generation clears the result; export needs a
      new generation.
    - Suggestions (dishes, allergens, hazards, stages, procedures) never fail
      the wizard; errors give an empty list.
    """,
)


SESSIONS = section(
    "7. Sessions & Persistence",
    """
    - Key format: `wizard:{session_id}`, JSON snapshot, TTL from config.
    - A restored snapshot with an interrupted generation is reset to step 8.
    - Expired or deleted sessions answer 404; an in-flight generation of a
      deleted session does not write it back.
    """,
)


EXPORT = section(
    "8. Export",
    """
    - `/session/{id}/export/docx` -> Documentation_<name>.docx
    - `/session/{id}/export/pdf`  -> HACCP_<name>.pdf
    - Set PDF_FONT_PATH to a TTF font for full Unicode output in PDFs.
    """,
)


CONFIG_ENV = section(
    "9. Configuration & Environment",
    """
    - `.env` compatible; keys: GEMINI_API_KEY, GEMINI_MODEL,
      GEMINI_FALLBACK_MODEL, GEMINI_TIMEOUT, DOCUMENT_LANGUAGE, REDIS_HOST,
      REDIS_PORT, REDIS_DB, SESSION_TTL_SECONDS, PDF_FONT_PATH, LOG_LEVEL.
    - Defaults are defined in `config.py`.
    """,
)


TESTING = section(
    "10. Testing Strategy",
    """
    - unittest-style tests in `/tests`, run with `python -m pytest tests/`.
    - Gemini and Redis are mocked; the API is exercised with TestClient.
    """,
)


SECURITY = section(
    "11. Security & PII Handling",
    """
    - `utils/security.py`: tax ids are masked in action logs.
    - Keys: Loaded from env; do not commit secrets.
    """,
)


DEPLOYMENT = section(
    "12. Deployment",
    """
    - Run locally via `uvicorn haccp_wizard.app.main:app --reload`.
    """,
)


TROUBLESHOOTING = section(
    "13. Troubleshooting",
    """
    - "Gemini API key is required": set GEMINI_API_KEY before generating.
    - Question marks in PDFs: configure PDF_FONT_PATH with a Unicode TTF.
    - Sessions lost on restart: Redis is unreachable and memory storage is in use.
    """,
)


def as_text() -> str:
    return "\n".join(
        [
            SYSTEM_OVERVIEW,
            ARCHITECTURE,
            BACKEND_COMPONENTS,
            WIZARD_STEPS,
            DERIVED_TABLES,
            GENERATION_FLOW,
            SESSIONS,
            EXPORT,
            CONFIG_ENV,
            TESTING,
            SECURITY,
            DEPLOYMENT,
            TROUBLESHOOTING,
        ]
    )


def main() -> None:
    print(textwrap.dedent(as_text()))


if __name__ == "__main__":
    main()
