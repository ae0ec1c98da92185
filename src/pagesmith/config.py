"""Generator configuration.

GeneratorConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from pagesmith.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Generator configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = GeneratorConfig(endpoint="https://example.test/generate", api_key="k")
    """

    # Backend
    endpoint: str = "http://localhost:54321/functions/v1/generate-page"
    api_key: str = ""
    default_model: str = "google/gemini-2.0-flash"
    timeout: float = 120.0

    # Mode classification (out-of-band response header)
    response_type_header: str = "X-Response-Type"
    conversation_value: str = "conversation"

    # Wire format
    data_prefix: str = "data: "
    done_sentinel: str = "[DONE]"

    # Extraction cadence on the artifact path
    min_chunks_before_extraction: int = 20
    extraction_every_chunks: int = 5
    extraction_interval: float = 0.1  # seconds since the last extraction
    min_preview_length: int = 50

    # Limits
    max_pending_chars: int = 1024 * 1024  # 1 MiB of unparsed buffer

    def __post_init__(self) -> None:
        if not self.endpoint:
            msg = "GeneratorConfig.endpoint must not be empty"
            raise ConfigurationError(msg)
        if self.timeout <= 0:
            msg = f"GeneratorConfig.timeout must be positive, got {self.timeout!r}"
            raise ConfigurationError(msg)
        if self.extraction_every_chunks < 1:
            msg = (
                "GeneratorConfig.extraction_every_chunks must be at least 1, "
                f"got {self.extraction_every_chunks!r}"
            )
            raise ConfigurationError(msg)
        if self.max_pending_chars < 1:
            msg = "GeneratorConfig.max_pending_chars must be positive"
            raise ConfigurationError(msg)

    @classmethod
    def from_env(cls, **overrides: object) -> GeneratorConfig:
        """Build a config from ``PAGESMITH_*`` environment variables.

        Explicit keyword overrides win over the environment::

            config = GeneratorConfig.from_env(timeout=30.0)
        """
        values: dict[str, object] = {}
        if endpoint := os.environ.get("PAGESMITH_ENDPOINT"):
            values["endpoint"] = endpoint
        if api_key := os.environ.get("PAGESMITH_API_KEY"):
            values["api_key"] = api_key
        if model := os.environ.get("PAGESMITH_MODEL"):
            values["default_model"] = model
        if timeout := os.environ.get("PAGESMITH_TIMEOUT"):
            try:
                values["timeout"] = float(timeout)
            except ValueError:
                msg = f"PAGESMITH_TIMEOUT must be a number, got {timeout!r}"
                raise ConfigurationError(msg) from None
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]
