"""
Оркестрация захвата: состояние сессии и конечный автомат стадий.
"""

from .capture_workflow import CaptureWorkflow, WorkflowStatus
from .session import CaptureSession

__all__ = ["CaptureWorkflow", "CaptureSession", "WorkflowStatus"]
