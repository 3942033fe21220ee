"""Baby profile and growth measurement endpoints."""

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_profile_service
from app.schemas.profile import (BabyProfileCreate, BabyProfileRead, BabyProfileResponse, MeasurementCreate,
                                 MeasurementRead, )
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("/baby-profile", summary="Profile, latest measurement and age.", response_model=BabyProfileResponse, )
def get_profile(service: ProfileService = Depends(get_profile_service)):
    return service.get_profile()


@router.post("/baby-profile", summary="Create or replace the profile.", response_model=BabyProfileRead, )
def save_profile(data: BabyProfileCreate, service: ProfileService = Depends(get_profile_service)):
    return service.save_profile(data.name, data.date_of_birth)


@router.get("/baby-measurements", summary="Growth measurements, newest first.",
            response_model=list[MeasurementRead], )
def list_measurements(service: ProfileService = Depends(get_profile_service)):
    return service.list_measurements()


@router.post("/baby-measurements", summary="Record a growth measurement.", response_model=MeasurementRead,
             status_code=status.HTTP_201_CREATED, )
def add_measurement(data: MeasurementCreate, service: ProfileService = Depends(get_profile_service)):
    return service.add_measurement(data)
