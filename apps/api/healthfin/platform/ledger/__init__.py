from healthfin.platform.ledger.api import router
from healthfin.platform.ledger.models import (
    ActivityEventMapping,
    Event,
    FinancialEvent,
    PlanningActivityEventMapping,
)
from healthfin.platform.ledger.schemas import FinancialEventRead, LedgerSyncRead
from healthfin.platform.ledger.service import LedgerMirrorService, ledger_mirror_service

__all__ = [
    "router",
    "Event",
    "ActivityEventMapping",
    "PlanningActivityEventMapping",
    "FinancialEvent",
    "FinancialEventRead",
    "LedgerSyncRead",
    "LedgerMirrorService",
    "ledger_mirror_service",
]
