from .prerequisites import PrerequisiteValidator

__all__ = ["PrerequisiteValidator"]
