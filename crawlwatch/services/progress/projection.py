from __future__ import annotations

from dataclasses import asdict
from typing import Any

from crawlwatch.services.progress.reducer import SessionProgress


def project_progress(progress: SessionProgress) -> dict[str, Any]:
    return {
        "stages": {name.value: stage.counters.as_dict() for name, stage in progress.stages.items()},
        "batch": asdict(progress.batch),
        "concurrency": asdict(progress.concurrency),
        "validation": asdict(progress.validation),
        "sync": asdict(progress.sync),
        "persist": asdict(progress.persist),
        "database": asdict(progress.database),
    }
