#!/usr/bin/env python3
"""
Generation module for the HACCP wizard.

This module calls the Gemini generateContent REST API and returns the
structured JSON the model was asked to produce.
"""

import json
import requests
from typing import Any, Dict, List, Optional
from .config import Config
from ..errors import GenerationError
from ..utils.logger import get_logger

logger = get_logger()

class GenerationClient:
    """Client for structured JSON generation using the Gemini API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 fallback_model: Optional[str] = None):
        """Initialize the generation client."""
        self.api_key = api_key or Config.GEMINI_API_KEY
        self.llm_model = model or Config.GEMINI_MODEL
        self.fallback_model = fallback_model if fallback_model is not None else Config.GEMINI_FALLBACK_MODEL
        self.timeout = Config.GEMINI_TIMEOUT

        if not self.api_key:
            raise ValueError("Gemini API key is required")

    def _url(self, model: str) -> str:
        return f"{Config.GEMINI_API_ROOT}/{model}:generateContent"

    def _models(self) -> List[str]:
        models = [self.llm_model]
        if self.fallback_model and self.fallback_model != self.llm_model:
            models.append(self.fallback_model)
        return models

    def generate_json(self, prompt: str, schema: Dict[str, Any], temperature: float = 0.2) -> Any:
        """
        Generate a JSON document that follows ``schema``.

        Args:
            prompt: Prompt text for the model
            schema: Gemini responseSchema (OpenAPI subset, upper-case types)
            temperature: Sampling temperature

        Returns:
            The parsed JSON value

        Raises:
            GenerationError: if every configured model fails
        """
        payload = {
            "contents": [
                {
                    "parts": [
                        {
                            "text": prompt
                        }
                    ]
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": "application/json",
                "responseSchema": schema
            }
        }

        last_error: Optional[Exception] = None
        for model in self._models():
            try:
                return self._call(model, payload)
            except GenerationError as e:
                logger.warning(f"[GEMINI] Model {model} failed: {e}")
                last_error = e
        raise last_error

    def _call(self, model: str, payload: Dict[str, Any]) -> Any:
        logger.info(f"[GEMINI] Sending request, model={model}, prompt length={len(payload['contents'][0]['parts'][0]['text'])}")
        try:
            response = requests.post(
                self._url(model),
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout
            )
            logger.info(f"[GEMINI] Received response, status: {response.status_code}")
            if response.status_code != 200:
                logger.debug(f"[GEMINI] Error response body: {response.text}")
                response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise GenerationError(f"Error calling Gemini API: {str(e)}")
        except ValueError as e:
            raise GenerationError(f"Gemini API returned invalid JSON: {str(e)}")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.debug(f"[GEMINI] Unexpected response structure: {data}")
            raise GenerationError(f"Error parsing generation response: {str(e)}")

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise GenerationError(f"Model output is not valid JSON: {str(e)}")

def main():
    """Main function for testing the generation client."""
    try:
        gen_client = GenerationClient()
        print("Generation client initialized successfully")

        schema = {
            "type": "OBJECT",
            "properties": {
                "stages": {"type": "ARRAY", "items": {"type": "STRING"}}
            }
        }
        print("\nGenerating answer...")
        answer = gen_client.generate_json("List five production stages of a small bakery.", schema)

        print("\nGenerated answer:")
        print("-" * 40)
        print(json.dumps(answer, indent=2, ensure_ascii=False))
        print("-" * 40)

    except Exception as e:
        print(f"Error: {e}")

if __name__ == "__main__":
    main()
