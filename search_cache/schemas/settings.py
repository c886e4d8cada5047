from pydantic import BaseModel


class ApiKeyStatus(BaseModel):
    configured: bool
    masked_key: str


class ProvidersResponse(BaseModel):
    default_provider: str
    google: ApiKeyStatus
    serpapi: ApiKeyStatus
