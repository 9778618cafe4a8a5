"""
Result objects for device operations.

A worker hands one OperationResult back to the orchestrator through its
final result signal; the CLI prints the same object as a summary.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any


@dataclass
class OperationResult:
    """
    Final outcome of one flash, backup or restore run.

    Attributes:
        ok: Whether the operation completed successfully
        operation: Name of the operation ("flash", "backup", "restore")
        target: Device or serial port the operation ran against
        path: Firmware image, backup destination or restore source
        bytes_len: Number of bytes transferred
        warnings: Non-blocking issues encountered
        errors: Blocking errors that caused failure
        metadata: Additional operation-specific data
        logs: Captured log lines from the operation
    """
    ok: bool
    operation: str
    target: str = ""
    path: str = ""
    bytes_len: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark result as failed."""
        self.errors.append(message)
        self.ok = False

    @property
    def detail(self) -> str:
        """First error message, or empty string on success."""
        return self.errors[0] if self.errors else ""

    def to_summary(self) -> str:
        """Generate a human-readable summary string."""
        status = "SUCCESS" if self.ok else "FAILED"
        lines = [f"[{status}] {self.operation}"]

        if self.target:
            lines.append(f"  Target: {self.target}")
        if self.path:
            lines.append(f"  Path: {self.path}")
        if self.bytes_len:
            lines.append(f"  Bytes: {self.bytes_len:,}")

        if self.warnings:
            lines.append("  Warnings:")
            for warn in self.warnings:
                lines.append(f"    - {warn}")

        if self.errors:
            lines.append("  Errors:")
            for err in self.errors:
                lines.append(f"    - {err}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "operation": self.operation,
            "target": self.target,
            "path": self.path,
            "bytes_len": self.bytes_len,
            "warnings": self.warnings,
            "errors": self.errors,
            "metadata": self.metadata,
            "logs": self.logs,
        }

    @classmethod
    def success(
        cls,
        operation: str,
        target: str = "",
        path: str = "",
        bytes_len: int = 0,
        **kwargs,
    ) -> "OperationResult":
        """Create a successful result."""
        return cls(
            ok=True,
            operation=operation,
            target=target,
            path=path,
            bytes_len=bytes_len,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        operation: str,
        error: str,
        target: str = "",
        **kwargs,
    ) -> "OperationResult":
        """Create a failed result."""
        result = cls(
            ok=False,
            operation=operation,
            target=target,
            **kwargs,
        )
        result.errors.append(error)
        return result
