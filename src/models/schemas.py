from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str
    timestamp: str
    service: str
    version: str


class ServiceInfo(BaseModel):
    service: str
    version: str
    endpoints: dict[str, str]
    documentation: str


class FieldErrorDetail(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    statusCode: int
    message: str
    error: str
    details: list[FieldErrorDetail] | None = None
