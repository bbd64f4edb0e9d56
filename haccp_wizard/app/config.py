#!/usr/bin/env python3
"""
Configuration management for the HACCP wizard backend.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class Config:
    """Configuration class for the application."""

    # Gemini (Google) API Configuration
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_FALLBACK_MODEL = os.getenv("GEMINI_FALLBACK_MODEL", "gemini-2.0-flash-lite")
    GEMINI_TIMEOUT = int(os.getenv("GEMINI_TIMEOUT", 90))
    GEMINI_API_ROOT = "https://generativelanguage.googleapis.com/v1beta/models"

    # Language the generated documentation is written in
    DOCUMENT_LANGUAGE = os.getenv("DOCUMENT_LANGUAGE", "Polish")

    # Redis Configuration
    REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
    REDIS_DB = int(os.getenv("REDIS_DB", 0))
    SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", 86400))

    # Export Configuration
    PDF_FONT_PATH = os.getenv("PDF_FONT_PATH")

    @classmethod
    def debug_print(cls):
        print(f"[CONFIG] GEMINI_MODEL={cls.GEMINI_MODEL} fallback={cls.GEMINI_FALLBACK_MODEL} set={bool(cls.GEMINI_API_KEY)}")
        print(f"[CONFIG] REDIS={cls.REDIS_HOST}:{cls.REDIS_PORT}/{cls.REDIS_DB} ttl={cls.SESSION_TTL_SECONDS}s")
        print(f"[CONFIG] DOCUMENT_LANGUAGE={cls.DOCUMENT_LANGUAGE} PDF_FONT_PATH={cls.PDF_FONT_PATH}")

    @classmethod
    def validate(cls):
        """Validate that the configuration is usable.

        The Gemini key is not required here; the generation client checks it
        when it is built so the wizard itself can run without one.
        """
        problems = []

        if cls.GEMINI_TIMEOUT <= 0:
            problems.append("GEMINI_TIMEOUT must be positive")
        if cls.SESSION_TTL_SECONDS <= 0:
            problems.append("SESSION_TTL_SECONDS must be positive")
        if cls.PDF_FONT_PATH and not os.path.exists(cls.PDF_FONT_PATH):
            problems.append(f"PDF_FONT_PATH does not exist: {cls.PDF_FONT_PATH}")

        if problems:
            raise ValueError(f"Invalid configuration: {', '.join(problems)}")

        return True

# Validate configuration on import
Config.validate()
