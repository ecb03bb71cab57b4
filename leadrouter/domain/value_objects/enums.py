"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class AssignmentMethod(str, Enum):
    NONE = "none"
    RULE_BASED = "rule_based"
    ROUND_ROBIN = "round_robin"
    MANUAL = "manual"


class LeadStatus(str, Enum):
    NEW = "new"
    CALLING = "calling"
    NO_ANSWER = "no_answer"
    QUOTED = "quoted"
    CLOSED = "closed"
    REJECTED = "rejected"

    def is_open(self) -> bool:
        """Only leads still in intake can be picked up by the engine."""
        return self in (LeadStatus.NEW, LeadStatus.CALLING)
