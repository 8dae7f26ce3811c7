"""
AlertHub - Background Worker Module
Durable enrichment task queue and the place-name enrichment job.
"""

from alerthub.worker.enrichment import EnrichmentJob, EnrichmentResult
from alerthub.worker.runner import EnrichmentWorker

__all__ = [
    "EnrichmentJob",
    "EnrichmentResult",
    "EnrichmentWorker",
]
