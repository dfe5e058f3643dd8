from healthfin.business.reporting.statements.api import router
from healthfin.business.reporting.statements.compiler import StatementRow, TemplateLine, compile_rows
from healthfin.business.reporting.statements.service import StatementService, statement_service

__all__ = [
    "router",
    "StatementRow",
    "TemplateLine",
    "compile_rows",
    "StatementService",
    "statement_service",
]
