from fastapi import Depends

from app.modules.chat.services.gateway import ProviderGateway
from core.config import Settings, get_settings


def get_gateway(settings: Settings = Depends(get_settings)) -> ProviderGateway:
    return ProviderGateway(settings)
