from typing import Any, Dict, List, Optional


class DomainException(Exception):
    pass


class EntityNotFoundException(DomainException):
    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = str(entity_id)


class UnauthorizedAccessException(DomainException):
    def __init__(
        self,
        resource: str,
        user_id: str | None = None,
        reason: str | None = None,
    ) -> None:
        message = f"User {user_id} is not authorized to access {resource}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.resource = resource
        self.user_id = user_id
        self.reason = reason


class ValidationException(DomainException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = details or {}


class CircularDependencyException(ValidationException):
    def __init__(self, task_id: str, dependency_id: str) -> None:
        super().__init__(
            f"Adding {dependency_id} as a dependency of {task_id} would create a circular dependency",
            details={"task_id": task_id, "dependency_id": dependency_id},
        )
        self.task_id = task_id
        self.dependency_id = dependency_id


class DependencyCycleException(ValidationException):
    def __init__(self, cycle: List[str]) -> None:
        super().__init__(
            f"Task graph contains a cycle: {' -> '.join(cycle)}",
            details={"cycle": cycle},
        )
        self.cycle = cycle


class ImportFormatException(DomainException):
    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"Failed to parse file {filename}: {reason}")
        self.filename = filename
        self.reason = reason


class StageTransitionException(DomainException):
    def __init__(self, idea_id: str, target_stage: str, reason: str) -> None:
        super().__init__(f"Idea {idea_id} cannot enter {target_stage}: {reason}")
        self.idea_id = idea_id
        self.target_stage = target_stage
        self.reason = reason


class LLMException(DomainException):
    def __init__(self, message: str) -> None:
        super().__init__(f"LLM error: {message}")


class LLMRateLimitException(LLMException):
    def __init__(self) -> None:
        super().__init__("Rate limits exceeded, please try again later.")


class LLMPaymentRequiredException(LLMException):
    def __init__(self) -> None:
        super().__init__("Payment required, please add funds to your AI workspace.")


class CacheException(DomainException):
    def __init__(self, message: str) -> None:
        super().__init__(f"Cache error: {message}")
