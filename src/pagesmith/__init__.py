"""Pagesmith — the streaming generation engine of an AI website builder.

Consumes a model's token stream, tells chat replies from generated pages,
recovers a well-formed HTML document from partial output, and reports
progress, with cooperative mid-flight cancellation.

Basic usage::

    from pagesmith import GenerationController, GeneratorConfig

    controller = GenerationController(GeneratorConfig.from_env())
    result = await controller.generate("A portfolio for a photographer")
    if result is not None:
        print(result.document)

Stop from anywhere (idempotent)::

    controller.stop()
"""

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "Extraction",
    "GeneratedPage",
    "GenerationController",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "GenerationSession",
    "GeneratorConfig",
    "Message",
    "PagesmithError",
    "ProjectFile",
    "ResponseMode",
    "StatusType",
    "extract_document",
    "finalize_document",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import pagesmith`` free of httpx until a controller is needed.
    """
    if name == "GenerationController":
        from pagesmith.controller import GenerationController

        return GenerationController

    if name == "GeneratorConfig":
        from pagesmith.config import GeneratorConfig

        return GeneratorConfig

    if name == "GenerationSession":
        from pagesmith.session import GenerationSession

        return GenerationSession

    if name in (
        "GeneratedPage",
        "GenerationRequest",
        "GenerationResult",
        "Message",
        "ProjectFile",
    ):
        from pagesmith import models as _models

        return getattr(_models, name)

    if name in ("Extraction", "extract_document", "finalize_document"):
        from pagesmith import extraction as _extraction

        return getattr(_extraction, name)

    if name == "ResponseMode":
        from pagesmith.mode import ResponseMode

        return ResponseMode

    if name == "StatusType":
        from pagesmith.progress import StatusType

        return StatusType

    if name in ("ConfigurationError", "GenerationError", "PagesmithError"):
        from pagesmith import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
