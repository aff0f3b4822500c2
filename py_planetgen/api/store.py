"""In-memory storage for generation jobs and finished planets."""

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import structlog

from ..core.planet import Planet, PlanetConfig

logger = structlog.get_logger()


@dataclass
class GenerationJob:
    """Status record for one background generation run."""

    config: PlanetConfig
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: str = "pending"
    progress_percent: int = 0
    stage: Optional[str] = None
    planet_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PlanetStore:
    """
    Bounded planet and job store.

    A planet becomes visible with a single dict assignment once generation
    has finished. The oldest planet is evicted when the store is full, along
    with the job that produced it. Jobs are capped separately, oldest first.
    """

    def __init__(self, max_planets: int = 10, max_jobs: int = 100):
        self.max_planets = max_planets
        self.max_jobs = max_jobs
        self._planets: "OrderedDict[str, Planet]" = OrderedDict()
        self._jobs: "OrderedDict[str, GenerationJob]" = OrderedDict()
        self._lock = threading.Lock()

    def add_job(self, job: GenerationJob) -> GenerationJob:
        with self._lock:
            self._jobs[job.id] = job
            while len(self._jobs) > self.max_jobs:
                evicted_id, _ = self._jobs.popitem(last=False)
                logger.info("Evicted job from store", job_id=evicted_id)
        return job

    def get_job(self, job_id: str) -> Optional[GenerationJob]:
        return self._jobs.get(job_id)

    def publish(self, planet: Planet) -> None:
        with self._lock:
            self._planets[planet.id] = planet
            while len(self._planets) > self.max_planets:
                evicted_id, _ = self._planets.popitem(last=False)
                stale_jobs = [
                    job_id for job_id, job in self._jobs.items()
                    if job.planet_id == evicted_id
                ]
                for job_id in stale_jobs:
                    del self._jobs[job_id]
                logger.info("Evicted planet from store", planet_id=evicted_id, jobs=len(stale_jobs))

    def get_planet(self, planet_id: str) -> Optional[Planet]:
        return self._planets.get(planet_id)

    def list_planets(self) -> List[Planet]:
        with self._lock:
            return list(reversed(self._planets.values()))

    def clear(self) -> None:
        with self._lock:
            self._planets.clear()
            self._jobs.clear()
