"""
Solar / battery / grid feed
"""
from fastapi import APIRouter, Depends

from coldchain_wms.database import DomainStore, get_store
from coldchain_wms.services.energy import solar_snapshot
from coldchain_wms.utils.helpers import site_now

router = APIRouter()


@router.get("/solar")
async def get_solar(store: DomainStore = Depends(get_store)):
    """Synthetic snapshot for the current time of day at the site"""
    return solar_snapshot(site_now(store.settings.SITE_TIMEZONE), store.rng)
