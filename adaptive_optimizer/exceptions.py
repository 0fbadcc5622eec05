"""
Structured exception hierarchy for the adaptive optimizer.

All exceptions carry:
- category: which part of the optimizer raised it
- severity: ERROR, WARNING, RECOVERABLE
- context: component, session and free-form metadata
- resolution_hints: actionable suggestions for common issues
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    ERROR = "error"              # Caller must fix something
    RECOVERABLE = "recoverable"  # Optimizer carried on with degraded behaviour
    WARNING = "warning"          # Non-blocking issue


class ErrorCategory(str, Enum):
    """Error categories for diagnostics"""
    CONFIGURATION = "configuration"  # Invalid or missing configuration
    CAPABILITY = "capability"        # Host introspection problems
    OBSERVER = "observer"            # Subscriber callbacks
    RESOURCE = "resource"            # Sampling and monitoring


@dataclass
class OptimizerContext:
    """Where an error happened"""

    component: Optional[str] = None
    session_id: Optional[str] = None
    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            k: v for k, v in self.__dict__.items()
            if v is not None and not k.startswith('_')
        }


@dataclass
class ResolutionHint:
    """Actionable resolution guidance"""

    title: str
    description: str
    steps: List[str] = field(default_factory=list)


class OptimizerError(Exception):
    """
    Base exception for the adaptive optimizer.

    Subclasses set ``category``; everything else is passed through keyword
    arguments so callers can attach context at the raise site.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Optional[OptimizerContext] = None,
        category: ErrorCategory = ErrorCategory.RESOURCE,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        resolution_hints: Optional[List[ResolutionHint]] = None,
        original_exception: Optional[BaseException] = None,
        **kwargs
    ):
        super().__init__(message)
        self.message = message
        self.context = context or OptimizerContext()
        self.category = category
        self.severity = severity
        self.resolution_hints = resolution_hints or []
        self.original_exception = original_exception
        self.additional_data = kwargs

    def format_diagnostic_message(self) -> str:
        """Multi-line description for console output."""
        lines = [
            f"ERROR: {self.message}",
            f"Severity: {self.severity.value.upper()} | Category: {self.category.value}",
        ]
        for key, value in self.context.to_dict().items():
            lines.append(f"  {key}: {value}")
        for i, hint in enumerate(self.resolution_hints, 1):
            lines.append(f"{i}. {hint.title}: {hint.description}")
            for step in hint.steps:
                lines.append(f"     - {step}")
        if self.original_exception:
            lines.append(
                f"Caused by {type(self.original_exception).__name__}: {self.original_exception}"
            )
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for structured logging"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "context": self.context.to_dict(),
            "resolution_hints": [hint.title for hint in self.resolution_hints],
            "original_exception": str(self.original_exception) if self.original_exception else None,
            **self.additional_data
        }


# Configuration Errors
class ConfigurationError(OptimizerError):
    """Configuration-related errors"""
    def __init__(self, message: str, **kwargs):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)


class InvalidConfigurationError(ConfigurationError):
    """Configuration file or environment override failed validation"""
    def __init__(self, message: str, config_path: Optional[str] = None, **kwargs):
        if "resolution_hints" not in kwargs:
            kwargs["resolution_hints"] = [
                ResolutionHint(
                    title="Check optimizer configuration",
                    description="A value is outside its allowed range or has the wrong type",
                    steps=[
                        "Compare the file against config/optimizer_config.yaml",
                        "Check OPTIMIZER_* environment variables for typos",
                    ],
                )
            ]
        super().__init__(message, config_path=config_path, **kwargs)
        self.config_path = config_path


# Observer Errors
class ObserverNotificationError(OptimizerError):
    """A settings observer raised while being notified"""
    def __init__(self, message: str, observer: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.OBSERVER,
            severity=ErrorSeverity.RECOVERABLE,
            observer=observer,
            **kwargs
        )
        self.observer = observer
