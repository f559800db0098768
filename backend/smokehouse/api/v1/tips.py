from fastapi import APIRouter

from smokehouse.schemas.tips import HeatingGuide
from smokehouse.services.tips import load_heating_guide

router = APIRouter(prefix="/tips", tags=["tips"])


@router.get("", response_model=HeatingGuide)
def get_heating_guide() -> HeatingGuide:
    return load_heating_guide()
