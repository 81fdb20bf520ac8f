from crawlwatch.services.progress.aggregator import (
    StageAggregator as StageAggregator,
)
from crawlwatch.services.progress.reducer import (
    SessionProgress as SessionProgress,
)
from crawlwatch.services.progress.reducer import (
    apply_event as apply_event,
)
from crawlwatch.services.progress.types import (
    StageCounters as StageCounters,
)
from crawlwatch.services.progress.types import (
    StageName as StageName,
)
