from types import MappingProxyType
from typing import Any, Callable, Optional

import structlog

# Default global registry for semantic context extractors
_DEFAULT_EXTRACTORS: dict[str, Callable[[Any], dict[str, Any]]] = {}


def _register_default_extractor(
    context_key: str, extractor_function: Callable[[Any], dict[str, Any]]
):
    _DEFAULT_EXTRACTORS[context_key] = extractor_function


_register_default_extractor(
    "plant",
    lambda plant: {
        "plant_id": getattr(plant, "id", None),
        "species": getattr(plant, "species", None),
    },
)

_register_default_extractor(
    "summary",
    lambda summary: {
        "successes": getattr(summary, "successes", None),
        "failures": getattr(summary, "failures", None),
    },
)

# Freeze default extractors to prevent mutation
_DEFAULT_EXTRACTORS = MappingProxyType(_DEFAULT_EXTRACTORS)


class FloraLogger:
    """
    A structured logging wrapper around structlog that enforces consistent logging
    conventions across Flora.

    Features:
        - Requires 'message' and 'event_code' for all logs, and 'reason'/'reason_code'
          for warnings/errors.
        - Automatically extracts common context from objects like plant records
          and batch summaries.
        - Allows semantic binding of objects (e.g., plant=record) which are
          expanded at log time.

    Usage:
    -----

    Create a logger:
        ```python
        structured_logger = FloraLogger.get_logger(__name__)
        ```

    Log an info-level event:
        ```python
        structured_logger.info(
            "Plant images mirrored.",
            event_code="plant_mirror_succeeded",
            plant=record,
        )
        ```

    Log a warning with reason:
        ```python
        structured_logger.warning(
            "Plant images partially mirrored.",
            event_code="plant_mirror_failed",
            reason="Only 2 images could be published.",
            reason_code="quota_not_met",
            plant=record,
        )
        ```

    Bind a plant once for every event about it:
        ```python
        plant_logger = structured_logger.bind(plant=record)
        plant_logger.info("Plant images mirrored.", event_code="plant_mirror_succeeded")
        ```

    Extractors are callables that take a single object and return a dictionary of
    fields. Fields with `None` values are omitted.
    """

    def __init__(self, logger, context: Optional[dict[str, Any]] = None):
        self._logger = logger
        self._context = context or {}
        self._extractors = dict(_DEFAULT_EXTRACTORS)

    @classmethod
    def get_logger(cls, name: str) -> "FloraLogger":
        """
        Factory method to create a FloraLogger from a given logger name.

        Args:
            name (str): The module name; the structlog logger is named
                f"structlog.{name}".

        Returns:
            FloraLogger: A logger instance with enriched behavior.
        """
        return cls(structlog.get_logger(f"structlog.{name}"))

    def log(
        self,
        level: str,
        message: str,
        *,
        event_code: str,
        reason: Optional[str] = None,
        reason_code: Optional[str] = None,
        **context: Any,
    ) -> None:
        """
        Emit structured logs with standardized context. This shouldn't be called
        directly under ordinary circumstances; use one of the level methods
        (debug, info, warning, error) instead.

        Raises:
            ValueError: If required fields are missing for the given log level.
        """
        if not message:
            raise ValueError("Log message is required.")
        if not event_code:
            raise ValueError("Structured logs must include an 'event_code' field.")
        if level in ("warning", "error") and (not reason or not reason_code):
            raise ValueError(
                "Warnings and errors must include both 'reason' and 'reason_code'."
            )

        context_data = {"event_code": event_code}
        if reason:
            context_data["reason"] = reason
        if reason_code:
            context_data["reason_code"] = reason_code

        bound_context = self._context

        for context_key, extractor_function in self._extractors.items():
            context_object = context.pop(context_key, bound_context.get(context_key))
            if context_object:
                extracted_fields = extractor_function(context_object)
                for key, value in extracted_fields.items():
                    if value is not None:
                        context_data.setdefault(key, value)

        for key, value in bound_context.items():
            if key not in self._extractors and key not in context and value is not None:
                context_data[key] = value

        # Explicit values win over extracted and bound ones
        for key, value in context.items():
            if value is not None:
                context_data[key] = value

        getattr(self._logger, level)(message, **context_data)

    def debug(self, message: str, *, event_code: str, **kwargs):
        """Emit a debug-level structured log."""
        self.log("debug", message, event_code=event_code, **kwargs)

    def info(self, message: str, *, event_code: str, **kwargs):
        """Emit an info-level structured log."""
        self.log("info", message, event_code=event_code, **kwargs)

    def warning(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        """Emit a warning-level structured log. Requires reason and reason_code."""
        self.log(
            "warning",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def error(
        self, message: str, *, event_code: str, reason: str, reason_code: str, **kwargs
    ):
        """Emit an error-level structured log. Requires reason and reason_code."""
        self.log(
            "error",
            message,
            event_code=event_code,
            reason=reason,
            reason_code=reason_code,
            **kwargs,
        )

    def bind(self, **kwargs: Any) -> "FloraLogger":
        """
        Return a new FloraLogger with additional context permanently bound.
        """
        new_context = self._context.copy()
        new_context.update(kwargs)
        return FloraLogger(self._logger, context=new_context)
