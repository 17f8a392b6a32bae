"""
Central feature flags. One file controls every external dependency.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the system uses a local fallback. Nothing crashes.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Auth ─────────────────────────────────────────────────────────
    use_auth0: bool = Field(default=True, alias="FF_USE_AUTH0")
    # ON  → JWT validated via Auth0 JWKS. Needs AUTH0_DOMAIN, AUTH0_AUDIENCE.
    # OFF → Dev user injected (user_id="dev-user"). No token needed.

    # ── Upload staging ───────────────────────────────────────────────
    use_s3: bool = Field(default=False, alias="FF_USE_S3")
    # ON  → Raw uploads staged in AWS S3 while text is extracted. Needs AWS creds.
    # OFF → Staged under LOCAL_STORAGE_PATH/{owner_id}/uploads/.
    # Either way the staged object is deleted once extraction finishes.

    # ── Locks ────────────────────────────────────────────────────────
    use_redis: bool = Field(default=False, alias="FF_USE_REDIS")
    # ON  → Summaries serialized with a Redis lock (safe across workers). Needs REDIS_URL.
    # OFF → asyncio.Lock per document. Only serializes within one process.

    # ── OCR ──────────────────────────────────────────────────────────
    use_ocr: bool = Field(default=False, alias="FF_USE_OCR")
    # ON  → Scanned PDFs processed via AIML OCR. Needs AIML_API_KEY.
    # OFF → Only pdfplumber. Scanned PDFs → empty text → ExtractionFailed.

    # ── LLM Provider ─────────────────────────────────────────────────
    llm_provider: str = Field(default="gemini", alias="FF_LLM_PROVIDER")
    # "gemini" → Google Gemini (default). Needs GEMINI_API_KEY.
    # "aiml"   → AIML API proxy. Needs AIML_API_KEY.
    # "openai" → Direct OpenAI. Needs OPENAI_API_KEY.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
