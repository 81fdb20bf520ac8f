from crawlwatch.services.session.controller import (
    SessionLifecycleController as SessionLifecycleController,
)
from crawlwatch.services.session.types import (
    RecomputeRange as RecomputeRange,
)
from crawlwatch.services.session.types import (
    SessionState as SessionState,
)
