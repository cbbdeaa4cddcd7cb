"""Profile endpoints: read the profile, save it through the onboarding form."""

from fastapi import APIRouter, Depends

from vitalscope.factory import ServiceFactory
from vitalscope.adapters.rest.dependencies import get_factory
from vitalscope.adapters.rest.schemas import ProfileBody, ProfileOut

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileOut)
async def get_profile(factory: ServiceFactory = Depends(get_factory)):
    profile = await factory.profile_store.load()
    return ProfileOut.from_domain(profile)


@router.put("", response_model=ProfileOut)
async def save_profile(
    body: ProfileBody,
    factory: ServiceFactory = Depends(get_factory),
):
    """Save the whole profile. The consent flag is checked, never stored."""
    form = await factory.open_profile_form()
    form.update(age=body.age, gender=body.gender, health_context=body.healthContext)
    if body.consent is not None:
        form.consented = body.consent
    saved = await form.submit()
    return ProfileOut.from_domain(saved)
