"""
Application services orchestrating repositories, domain rules and the AI gateway.
"""

from .ai import AIService
from .analytics import AnalyticsService
from .auth import AuthService
from .checklist import ChecklistService
from .ideas import IdeaService
from .phases import PhaseService
from .projects import ProjectService
from .tasks import TaskService
from .vendors import VendorService

__all__ = [
    "AIService",
    "AnalyticsService",
    "AuthService",
    "ChecklistService",
    "IdeaService",
    "PhaseService",
    "ProjectService",
    "TaskService",
    "VendorService",
]
