from crawlwatch.api.schemas.common import (
    ApiErrorEnvelope as ApiErrorEnvelope,
)
from crawlwatch.api.schemas.common import (
    MessageEnvelope as MessageEnvelope,
)
from crawlwatch.api.schemas.diagnostics import (
    DiagnosticsRepairEnvelope as DiagnosticsRepairEnvelope,
)
from crawlwatch.api.schemas.diagnostics import (
    DiagnosticsRepairRequest as DiagnosticsRepairRequest,
)
from crawlwatch.api.schemas.diagnostics import (
    DiagnosticsScanEnvelope as DiagnosticsScanEnvelope,
)
from crawlwatch.api.schemas.operations import (
    OperationStartedEnvelope as OperationStartedEnvelope,
)
from crawlwatch.api.schemas.operations import (
    RangeRecomputeEnvelope as RangeRecomputeEnvelope,
)
from crawlwatch.api.schemas.operations import (
    SyncStartRequest as SyncStartRequest,
)
from crawlwatch.api.schemas.operations import (
    ValidationStartRequest as ValidationStartRequest,
)
from crawlwatch.api.schemas.progress import (
    ProgressSnapshotEnvelope as ProgressSnapshotEnvelope,
)
from crawlwatch.api.schemas.ranges import (
    PreparedRangesEnvelope as PreparedRangesEnvelope,
)
from crawlwatch.api.schemas.ranges import (
    RangeNormalizeRequest as RangeNormalizeRequest,
)
