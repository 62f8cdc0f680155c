"""
Material catalog endpoints.
"""

from fastapi import APIRouter, Depends, Query

from treqy.api.dependencies import get_browse_catalog_use_case, get_studio_id
from treqy.application.dto.responses import (
    ErrorResponse,
    ManufacturerListResponse,
    ManufacturerResponse,
    MaterialListResponse,
    MaterialResponse,
)
from treqy.application.use_cases import BrowseCatalogUseCase
from treqy.core.entities.catalog import Manufacturer, Material

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def material_to_response(material: Material) -> MaterialResponse:
    return MaterialResponse(
        id=material.id,
        name=material.name,
        tag=material.tag,
        category=material.category,
        subcategory=material.subcategory,
        location=material.location,
        reference_sku=material.reference_sku,
        dimensions=material.dimensions,
        notes=material.notes,
        manufacturer_id=material.manufacturer_id,
        submission_id=material.submission_id,
        project_ids=material.project_ids,
        created_at=material.created_at,
    )


def manufacturer_to_response(manufacturer: Manufacturer) -> ManufacturerResponse:
    return ManufacturerResponse(
        id=manufacturer.id,
        name=manufacturer.name,
        created_at=manufacturer.created_at,
    )


@router.get("/materials", response_model=MaterialListResponse)
async def list_materials(
    project_id: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    studio_id: str = Depends(get_studio_id),
    use_case: BrowseCatalogUseCase = Depends(get_browse_catalog_use_case),
) -> MaterialListResponse:
    """List approved materials, optionally for one project."""
    materials = await use_case.list_materials(
        studio_id, project_id=project_id, limit=limit, offset=offset
    )
    return MaterialListResponse(
        materials=[material_to_response(m) for m in materials],
        total=len(materials),
        limit=limit,
        offset=offset,
    )


@router.get(
    "/materials/{material_id}",
    response_model=MaterialResponse,
    responses={404: {"model": ErrorResponse, "description": "Material not found"}},
)
async def get_material(
    material_id: str,
    studio_id: str = Depends(get_studio_id),
    use_case: BrowseCatalogUseCase = Depends(get_browse_catalog_use_case),
) -> MaterialResponse:
    """Get one approved material with its project links."""
    material = await use_case.get_material(studio_id, material_id)
    return material_to_response(material)


@router.get("/manufacturers", response_model=ManufacturerListResponse)
async def list_manufacturers(
    studio_id: str = Depends(get_studio_id),
    use_case: BrowseCatalogUseCase = Depends(get_browse_catalog_use_case),
) -> ManufacturerListResponse:
    """List the studio's manufacturers."""
    manufacturers = await use_case.list_manufacturers(studio_id)
    return ManufacturerListResponse(
        manufacturers=[manufacturer_to_response(m) for m in manufacturers],
        total=len(manufacturers),
    )
