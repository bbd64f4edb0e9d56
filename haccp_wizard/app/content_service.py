"""Content service: the wizard's remote capability backed by Gemini.

Documentation generation raises on failure so the wizard can surface an error
and offer a retry. Suggestions are optional enrichments: any failure is logged
and degrades to an empty list.
"""
from typing import Any, Callable, List, Optional, Type, TypeVar

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from ..errors import GenerationError
from ..schemas.form_models import FormData
from ..schemas.result_models import (
    AllergenSuggestion,
    DishSuggestion,
    GeneratedResult,
    HazardSuggestion,
    ProcedureBlock,
    StageSuggestion,
)
from ..utils.logger import get_logger
from .generate import GenerationClient
from .prompt_builder import (
    ALLERGENS_SCHEMA,
    DISHES_SCHEMA,
    DOCUMENTATION_SCHEMA,
    HAZARDS_SCHEMA,
    PROCEDURES_SCHEMA,
    STAGES_SCHEMA,
    PromptBuilder,
)

logger = get_logger()

Item = TypeVar("Item", bound=BaseModel)


class GeminiContentService:
    def __init__(self, client: Optional[GenerationClient] = None,
                 builder: Optional[PromptBuilder] = None,
                 client_factory: Callable[[], GenerationClient] = GenerationClient):
        self._client = client
        self._client_factory = client_factory
        self.builder = builder or PromptBuilder()

    @property
    def client(self) -> GenerationClient:
        # Built lazily so the wizard runs without an API key until a call is made.
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    async def _generate(self, prompt: str, schema: dict) -> Any:
        return await run_in_threadpool(self.client.generate_json, prompt, schema)

    async def generate_documentation(self, form: FormData) -> GeneratedResult:
        prompt = self.builder.build_documentation_prompt(form)
        data = await self._generate(prompt, DOCUMENTATION_SCHEMA)
        if not isinstance(data, dict):
            raise GenerationError("Unexpected documentation payload shape.")
        try:
            result = GeneratedResult.model_validate(data)
        except ValidationError as e:
            raise GenerationError(f"Documentation payload failed validation: {e}")
        if result.is_empty():
            raise GenerationError("Empty response from the AI model.")
        return result

    async def _suggest(self, kind: str, prompt: str, schema: dict, key: str,
                       model: Type[Item]) -> List[Item]:
        try:
            data = await self._generate(prompt, schema)
            items = data.get(key) if isinstance(data, dict) else None
            suggestions = []
            for raw in items or []:
                try:
                    suggestions.append(model.model_validate(raw))
                except ValidationError:
                    logger.debug(f"[SUGGEST] Skipping malformed {kind} item: {raw}")
            logger.info(f"[SUGGEST] {kind}: {len(suggestions)} suggestion(s)")
            return suggestions
        except Exception as e:
            logger.warning(f"[SUGGEST] {kind} suggestion failed: {e}")
            return []

    async def suggest_dishes(self, category: str) -> List[DishSuggestion]:
        return await self._suggest("dishes", self.builder.build_dishes_prompt(category),
                                   DISHES_SCHEMA, "dishes", DishSuggestion)

    async def suggest_allergens(self, dishes: List[str]) -> List[AllergenSuggestion]:
        return await self._suggest("allergens", self.builder.build_allergens_prompt(dishes),
                                   ALLERGENS_SCHEMA, "suggestions", AllergenSuggestion)

    async def suggest_product_hazards(self, products: List[str]) -> List[HazardSuggestion]:
        return await self._suggest("hazards", self.builder.build_hazards_prompt(products),
                                   HAZARDS_SCHEMA, "hazards", HazardSuggestion)

    async def suggest_stages(self, category: str) -> List[StageSuggestion]:
        return await self._suggest("stages", self.builder.build_stages_prompt(category),
                                   STAGES_SCHEMA, "stages", StageSuggestion)

    async def suggest_procedures(self, category: str) -> List[ProcedureBlock]:
        return await self._suggest("procedures", self.builder.build_procedures_prompt(category),
                                   PROCEDURES_SCHEMA, "sops", ProcedureBlock)
