from fastapi import APIRouter, HTTPException
from ..geometry import FitRect, InvalidGeometry, MappedBox, fit_image, map_pixel_box
from ..schemas import FitRequest, MapRequest

router = APIRouter()

@router.post("/map", response_model=MappedBox)
def map_box(payload: MapRequest):
    return map_pixel_box(payload.pixel_box, payload.rendered_size, payload.page_size)

@router.post("/fit", response_model=FitRect)
def fit_box(payload: FitRequest):
    try:
        return fit_image(payload.image_size, payload.target_box)
    except InvalidGeometry as exc:
        raise HTTPException(400, f"invalid geometry: {exc}")
