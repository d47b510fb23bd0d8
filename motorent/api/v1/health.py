from fastapi import APIRouter, Depends

from motorent.api.dependencies import get_whatsapp_client
from motorent.clients.whatsapp import WhatsAppClient
from motorent.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check():
    return HealthResponse(ok=True)


@router.get("/health/circuit-breakers")
def circuit_breaker_health(
    whatsapp_client: WhatsAppClient = Depends(get_whatsapp_client),
):
    return {
        "circuit_breakers": whatsapp_client.get_circuit_breaker_stats(),
        "status": "ok",
    }
