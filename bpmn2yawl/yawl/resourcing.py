# YAWL Resourcing
# Task-level work distribution settings (offer / allocate / start)

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class InitiatorType(Enum):
    USER = "user"
    SYSTEM = "system"


@dataclass(frozen=True)
class ResourcingType:
    """A role (or participant) that work items can be distributed to."""

    id: str
    name: str = ""
    kind: str = "role"


@dataclass
class DistributionSet:
    initial_set: List[ResourcingType] = field(default_factory=list)


@dataclass
class YResourcing:
    offer: InitiatorType = InitiatorType.USER
    allocate: InitiatorType = InitiatorType.USER
    start: InitiatorType = InitiatorType.USER
    offer_distribution_set: Optional[DistributionSet] = None
    allocate_distribution_set: Optional[DistributionSet] = None
