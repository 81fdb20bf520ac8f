from crawlwatch.services.diagnostics.reconciler import (
    derive_coarse_repair_range as derive_coarse_repair_range,
)
from crawlwatch.services.diagnostics.reconciler import (
    derive_slot_repair_plan as derive_slot_repair_plan,
)
from crawlwatch.services.diagnostics.types import (
    DiagnosticGroupSummary as DiagnosticGroupSummary,
)
from crawlwatch.services.diagnostics.types import (
    PaginationDiagnosticReport as PaginationDiagnosticReport,
)
from crawlwatch.services.diagnostics.types import (
    RepairPlanEntry as RepairPlanEntry,
)
