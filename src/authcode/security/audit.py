"""
Audit Logging.
Created: 2026-10-19

Append-only JSONL audit trail for authorization decisions: codes issued,
tokens issued, exchanges rejected. Raw codes and tokens are never written.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger("audit")


class AuditSeverity(str, Enum):
    INFO = "info"  # Normal operation (e.g. code issued)
    WARNING = "warning"  # Rejected request (e.g. bad client secret)
    ALERT = "alert"  # Likely attack (e.g. code replay)


@dataclass
class AuditEvent:
    """A single audit log entry."""

    id: str
    timestamp: str
    severity: AuditSeverity
    actor: str  # Client id, or "anonymous"
    action: str  # e.g. "code_issued", "token_issued", "exchange_rejected"
    target: str  # e.g. "user:alice"
    status: str  # "success", "block"
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        severity: AuditSeverity,
        actor: str,
        action: str,
        target: str,
        status: str,
        **context: Any,
    ) -> AuditEvent:
        return cls(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(tz=UTC).isoformat(),
            severity=severity,
            actor=actor,
            action=action,
            target=target,
            status=status,
            context=context,
        )


class AuditLogger:
    """
    Append-only audit logger.
    Writes to <config dir>/audit.jsonl unless given an explicit path.
    """

    def __init__(self, log_path: Path | None = None, enabled: bool = True):
        if log_path is None:
            from authcode.config import get_config_dir

            log_path = get_config_dir() / "audit.jsonl"
        self.log_path = log_path
        self.enabled = enabled
        self._callbacks: list[Callable[[dict], None]] = []

    def on_log(self, callback: Callable[[dict], None]) -> None:
        """Register a callback to be called after each audit log write."""
        self._callbacks.append(callback)

    def log(self, event: AuditEvent) -> None:
        """Write an event to the audit log."""
        if not self.enabled:
            return
        try:
            event_dict = asdict(event)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event_dict) + "\n")
        except (OSError, TypeError, ValueError) as e:
            logger.critical("FAILED TO WRITE AUDIT LOG: %s | Event: %s", e, event)
            return
        for cb in self._callbacks:
            try:
                cb(event_dict)
            except Exception:
                logger.exception("Audit callback failed")

    def log_oauth_event(
        self,
        action: str,
        actor: str,
        target: str,
        status: str = "success",
        severity: AuditSeverity = AuditSeverity.INFO,
        **context: Any,
    ) -> str:
        """Helper to log an authorization decision."""
        event = AuditEvent.create(
            severity=severity,
            actor=actor or "anonymous",
            action=action,
            target=target,
            status=status,
            **context,
        )
        self.log(event)
        return event.id


# Singleton
_audit_logger: AuditLogger | None = None


def get_audit_logger() -> AuditLogger:
    global _audit_logger
    if _audit_logger is None:
        from authcode.config import get_settings

        _audit_logger = AuditLogger(enabled=get_settings().audit_enabled)
    return _audit_logger


def reset_audit_logger() -> None:
    global _audit_logger
    _audit_logger = None
