# Application Scheduling Package
from .due_selector import select_due
from .projection import generate_review_schedule, project
from .replay import apply_review, replay
from .retention_model import calculate_interval, preview, retrievability, transition

__all__ = [
    "apply_review",
    "calculate_interval",
    "generate_review_schedule",
    "preview",
    "project",
    "replay",
    "retrievability",
    "select_due",
    "transition",
]
