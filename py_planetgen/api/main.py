"""FastAPI main application."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import structlog
from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .. import __version__
from ..config import settings
from ..core.generator import generate_planet
from ..core.planet import Planet, PlanetConfig, PlanetConfigError
from ..core.terrain import TERRAIN_NAMES, TerrainType
from ..utils.logging import configure_logging
from ..utils.random import resolve_seed
from .store import GenerationJob, PlanetStore

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

app = FastAPI(
    title="Planet Generator API",
    description="Procedural planet generation with tectonic plates, climate and terrain",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

store = PlanetStore(
    max_planets=settings.max_stored_planets,
    max_jobs=settings.max_stored_jobs,
)


# Request/Response models
class PlanetGenerationRequest(BaseModel):
    """Request to generate a new planet. Missing fields use the server defaults."""

    seed: Optional[str] = Field(None, description="Random seed for reproducible generation")
    tile_count: Optional[int] = Field(None, ge=4, description="Number of tiles")
    jitter: Optional[float] = Field(None, ge=0.0, le=1.0, description="Point jitter")
    algorithm: Optional[int] = Field(None, ge=1, le=2, description="Spiral algorithm (1 or 2)")
    plate_count: Optional[int] = Field(None, ge=1, description="Number of tectonic plates")
    radius: Optional[float] = Field(None, gt=0, description="Planet radius in km")


class JobResponse(BaseModel):
    """Response with job information."""

    job_id: str
    status: str
    progress_percent: int
    message: str
    stage: Optional[str] = None
    planet_id: Optional[str] = None
    error_message: Optional[str] = None


class PlanetSummary(BaseModel):
    """Summary information about a generated planet."""

    id: str
    seed: str
    tile_count: int
    plate_count: int
    jitter: float
    algorithm: int
    radius: float
    total_area: float
    generation_time_seconds: Optional[float]


class TileDetail(BaseModel):
    """All fields of a single tile."""

    id: int
    terrain: str
    terrain_name: str
    color: str
    center: List[float]
    lat: float
    lon: float
    neighbors: List[int]
    area: float
    elevation: float
    plate: int
    moisture: float
    temperature: float
    is_ocean_connected: bool
    polygon: List[List[float]]


class PlateInfo(BaseModel):
    """A tectonic plate and its size."""

    id: int
    seed_tile_id: int
    center: List[float]
    motion: List[float]
    is_oceanic: bool
    base_elevation: float
    tile_count: int


class TerrainStatistics(BaseModel):
    """Terrain distribution entry for a planet."""

    terrain: str
    terrain_name: str
    tile_count: int
    percentage: float
    area: float


class PlanetStatistics(BaseModel):
    """Statistics about a generated planet."""

    planet_id: str
    total_tiles: int
    land_tiles: int
    water_tiles: int
    ocean_tiles: int
    lake_tiles: int
    plate_count: int
    oceanic_plates: int
    terrain_distribution: List[TerrainStatistics]
    elevation_range: Tuple[float, float]
    moisture_range: Tuple[float, float]
    temperature_range: Tuple[float, float]


def build_config(request: PlanetGenerationRequest) -> PlanetConfig:
    """Fill request gaps from settings and validate the result."""
    tile_count = request.tile_count if request.tile_count is not None else settings.default_tile_count
    if tile_count > settings.max_tile_count:
        raise PlanetConfigError(
            f"tile_count must not exceed {settings.max_tile_count}, got {tile_count}"
        )
    return PlanetConfig(
        tile_count=tile_count,
        jitter=request.jitter if request.jitter is not None else settings.default_jitter,
        algorithm=request.algorithm if request.algorithm is not None else settings.default_algorithm,
        plate_count=request.plate_count if request.plate_count is not None else settings.default_plate_count,
        radius=request.radius if request.radius is not None else settings.default_radius,
        seed=resolve_seed(request.seed),
    )


def get_planet_or_404(planet_id: str) -> Planet:
    planet = store.get_planet(planet_id)
    if planet is None:
        raise HTTPException(status_code=404, detail="Planet not found")
    return planet


def summarize(planet: Planet) -> PlanetSummary:
    config = planet.config
    return PlanetSummary(
        id=planet.id,
        seed=config.seed,
        tile_count=planet.tile_count,
        plate_count=len(planet.plates),
        jitter=config.jitter,
        algorithm=config.algorithm,
        radius=config.radius,
        total_area=planet.total_area(),
        generation_time_seconds=planet.generation_time_seconds,
    )


def job_response(job: GenerationJob, message: Optional[str] = None) -> JobResponse:
    return JobResponse(
        job_id=job.id,
        status=job.status,
        progress_percent=job.progress_percent,
        message=message or f"Job {job.status}",
        stage=job.stage,
        planet_id=job.planet_id,
        error_message=job.error_message,
    )


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Planet Generator API",
        "version": __version__,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "stored_planets": len(store.list_planets())}


@app.post("/planets/generate", response_model=JobResponse)
async def generate(request: PlanetGenerationRequest, background_tasks: BackgroundTasks):
    """
    Start planet generation job.

    Returns immediately with job ID. Use /jobs/{job_id} to check status.
    """
    logger.info("Planet generation requested", request=request.model_dump())
    try:
        config = build_config(request)
    except PlanetConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))

    job = store.add_job(GenerationJob(config=config))
    background_tasks.add_task(run_planet_generation, job.id)

    return job_response(job, "Planet generation job started")


@app.get("/jobs/{job_id}", response_model=JobResponse)
async def get_job_status(job_id: str):
    """Get status of a planet generation job."""
    job = store.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return job_response(job)


@app.get("/planets", response_model=List[PlanetSummary])
async def list_planets():
    """List stored planets, newest first."""
    return [summarize(planet) for planet in store.list_planets()]


@app.get("/planets/{planet_id}", response_model=PlanetSummary)
async def get_planet(planet_id: str):
    """Get planet details."""
    return summarize(get_planet_or_404(planet_id))


@app.get("/planets/{planet_id}/tiles/{tile_id}", response_model=TileDetail)
async def get_tile(planet_id: str, tile_id: int):
    """Get one tile including its boundary polygon."""
    planet = get_planet_or_404(planet_id)
    tile = planet.get_tile(tile_id)
    if tile is None:
        raise HTTPException(status_code=404, detail="Tile not found")
    return TileDetail(**tile.to_dict(include_polygon=True))


@app.get("/planets/{planet_id}/plates", response_model=List[PlateInfo])
async def get_plates(planet_id: str):
    """Get the tectonic plates of a planet."""
    planet = get_planet_or_404(planet_id)
    sizes: Dict[int, int] = {}
    for tile in planet.tiles.values():
        sizes[tile.plate] = sizes.get(tile.plate, 0) + 1
    return [
        PlateInfo(**plate.to_dict(), tile_count=sizes.get(plate.id, 0))
        for plate in planet.plates
    ]


@app.get("/planets/{planet_id}/statistics", response_model=PlanetStatistics)
async def get_statistics(planet_id: str):
    """Get terrain distribution and field ranges for a planet."""
    planet = get_planet_or_404(planet_id)
    tiles = list(planet.tiles.values())
    total = len(tiles)

    areas: Dict[str, float] = {}
    for tile in tiles:
        areas[tile.terrain.name] = areas.get(tile.terrain.name, 0.0) + tile.area

    distribution = [
        TerrainStatistics(
            terrain=name,
            terrain_name=TERRAIN_NAMES[TerrainType[name]],
            tile_count=count,
            percentage=round(100.0 * count / total, 2) if total else 0.0,
            area=areas[name],
        )
        for name, count in sorted(planet.terrain_stats.items(), key=lambda item: -item[1])
    ]

    def value_range(values: List[float]) -> Tuple[float, float]:
        return (min(values), max(values)) if values else (0.0, 0.0)

    water = sum(1 for tile in tiles if tile.is_water)
    return PlanetStatistics(
        planet_id=planet.id,
        total_tiles=total,
        land_tiles=total - water,
        water_tiles=water,
        ocean_tiles=sum(1 for tile in tiles if tile.terrain == TerrainType.OCEAN),
        lake_tiles=sum(1 for tile in tiles if tile.terrain == TerrainType.LAKE),
        plate_count=len(planet.plates),
        oceanic_plates=sum(1 for plate in planet.plates if plate.is_oceanic),
        terrain_distribution=distribution,
        elevation_range=value_range([tile.elevation for tile in tiles]),
        moisture_range=value_range([tile.moisture for tile in tiles]),
        temperature_range=value_range([tile.temperature for tile in tiles]),
    )


@app.get("/planets/{planet_id}/export")
async def export_planet(planet_id: str, include_polygons: bool = True) -> Dict[str, Any]:
    """Full read-only snapshot of a planet for rendering clients."""
    return get_planet_or_404(planet_id).to_dict(include_polygons=include_polygons)


# Background task functions
def run_planet_generation(job_id: str) -> None:
    """
    Background task to generate a planet.

    Runs in the threadpool; the planet is published only after every stage
    has finished.
    """
    job = store.get_job(job_id)
    if job is None:
        logger.error("Generation job vanished", job_id=job_id)
        return

    logger.info("Starting planet generation", job_id=job_id, seed=job.config.seed)
    job.status = "running"
    job.started_at = datetime.utcnow()

    def on_progress(percent: int, stage: str) -> None:
        job.progress_percent = percent
        job.stage = stage

    try:
        planet = generate_planet(job.config, progress_callback=on_progress)
        store.publish(planet)
        job.planet_id = planet.id
        job.status = "completed"
        job.progress_percent = 100
        job.completed_at = datetime.utcnow()
        logger.info("Planet generation completed", job_id=job_id, planet_id=planet.id)

    except Exception as e:
        logger.error("Planet generation failed", job_id=job_id, error=str(e))
        job.status = "failed"
        job.error_message = str(e)
        job.completed_at = datetime.utcnow()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
