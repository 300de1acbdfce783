from .prd import PRD, PrdStatus
from .prd_question import PrdQuestion

__all__ = ["PRD", "PrdStatus", "PrdQuestion"]
