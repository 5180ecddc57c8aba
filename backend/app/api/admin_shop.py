"""Admin shop settings: contact details shown on the storefront."""

import logging
import re

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr, HttpUrl, TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas import ShopResponse, ShopSocialMedia, ShopTimings
from app.auth import get_current_admin
from app.config import get_settings
from app.database import get_db
from app.models import Shop

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/shop",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)

PHONE_RE = re.compile(r"^[+]?[0-9\-\s()]{10,15}$")
REQUIRED_FIELDS = (
    "shop_name",
    "shop_name_english",
    "owner_name",
    "owner_name_english",
    "address",
    "address_english",
    "phone",
    "whatsapp",
    "email",
)

_email = TypeAdapter(EmailStr)
_url = TypeAdapter(HttpUrl)


class ShopUpdateRequest(BaseModel):
    shop_name: str
    shop_name_english: str
    owner_name: str
    owner_name_english: str
    address: str
    address_english: str
    phone: str
    whatsapp: str
    email: str
    website: str = ""
    description: str = ""
    description_english: str = ""
    timings: ShopTimings
    social_media: ShopSocialMedia = ShopSocialMedia()


def _is_url(value: str) -> bool:
    try:
        _url.validate_python(value)
    except ValidationError:
        return False
    return True


def clean_shop_update(data: ShopUpdateRequest) -> dict:
    """Strip and validate the submitted profile; raises 400 on the first problem."""
    values = {
        field: value.strip() if isinstance(value, str) else value
        for field, value in data.model_dump().items()
    }

    for field in REQUIRED_FIELDS:
        if not values[field]:
            raise HTTPException(status_code=400, detail=f"Field '{field}' is required")

    timings = {key: value.strip() for key, value in values["timings"].items()}
    if not all(timings.values()):
        raise HTTPException(status_code=400, detail="Shop timings are incomplete")
    values["timings"] = timings

    try:
        values["email"] = _email.validate_python(values["email"]).lower()
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid email format")

    if not PHONE_RE.match(values["phone"]):
        raise HTTPException(status_code=400, detail="Invalid phone number format")
    if not PHONE_RE.match(values["whatsapp"]):
        raise HTTPException(status_code=400, detail="Invalid WhatsApp number format")

    if values["website"] and not _is_url(values["website"]):
        raise HTTPException(status_code=400, detail="Invalid website URL")

    social = {key: value.strip() for key, value in values["social_media"].items()}
    for network, link in social.items():
        if link and not _is_url(link):
            raise HTTPException(status_code=400, detail=f"Invalid {network} URL")
    values["social_media"] = social

    return values


@router.get("", response_model=ShopResponse)
async def get_shop_settings(db: AsyncSession = Depends(get_db)):
    shop = await db.get(Shop, get_settings().shop_uuid)
    if not shop:
        raise HTTPException(status_code=404, detail="Shop not found")
    return shop


@router.put("", response_model=ShopResponse)
async def update_shop_settings(data: ShopUpdateRequest, db: AsyncSession = Depends(get_db)):
    values = clean_shop_update(data)
    shop_id = get_settings().shop_uuid

    shop = await db.get(Shop, shop_id)
    if shop is None:
        shop = Shop(id=shop_id, is_active=True, **values)
        db.add(shop)
        logger.info("Created shop profile %s", shop_id)
    else:
        for field, value in values.items():
            setattr(shop, field, value)

    await db.flush()
    await db.refresh(shop)
    return shop
