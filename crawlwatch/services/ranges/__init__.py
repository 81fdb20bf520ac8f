from crawlwatch.services.ranges.clamping import (
    clamp_to_max_span as clamp_to_max_span,
)
from crawlwatch.services.ranges.clamping import (
    clamp_to_site_bounds as clamp_to_site_bounds,
)
from crawlwatch.services.ranges.clamping import (
    describe_clamp as describe_clamp,
)
from crawlwatch.services.ranges.errors import (
    RangeExpressionError as RangeExpressionError,
)
from crawlwatch.services.ranges.expressions import (
    compress_pages as compress_pages,
)
from crawlwatch.services.ranges.expressions import (
    expand_pages as expand_pages,
)
from crawlwatch.services.ranges.expressions import (
    parse_expression as parse_expression,
)
from crawlwatch.services.ranges.expressions import (
    parse_single as parse_single,
)
from crawlwatch.services.ranges.expressions import (
    serialize as serialize,
)
from crawlwatch.services.ranges.types import (
    ClampResult as ClampResult,
)
from crawlwatch.services.ranges.types import (
    PageRange as PageRange,
)
