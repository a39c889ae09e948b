"""Task and permission types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

TaskStatus = Literal["pending", "in_progress", "completed"]
PermissionStatus = Literal["granted", "denied", "unset"]


@dataclass
class Task:
    id: str
    content: str  # imperative: "Run tests"
    active_form: str  # continuous: "Running tests"
    status: TaskStatus = "pending"
