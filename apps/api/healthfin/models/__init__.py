from healthfin.business.execution.models import ExecutionData
from healthfin.business.masterdata.models import (
    Activity,
    District,
    Facility,
    PlanningActivity,
    Project,
    ReportingPeriod,
)
from healthfin.business.planning.models import PlanningData
from healthfin.business.reporting.statements.models import StatementTemplate
from healthfin.platform.ledger.models import (
    ActivityEventMapping,
    Event,
    FinancialEvent,
    PlanningActivityEventMapping,
)

__all__ = [
    "District",
    "Facility",
    "Project",
    "ReportingPeriod",
    "Activity",
    "PlanningActivity",
    "Event",
    "ActivityEventMapping",
    "PlanningActivityEventMapping",
    "FinancialEvent",
    "PlanningData",
    "ExecutionData",
    "StatementTemplate",
]
