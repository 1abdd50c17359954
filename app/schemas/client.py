from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, computed_field, field_validator

from app.services import payout_service


VAName = Literal["VA Alpha", "VA Beta", "VA Gamma"]
HireType = Literal["Part-Time", "Full-Time"]


class ClientCreate(BaseModel):
    name: str
    email: str
    va_name: VAName
    hire_type: HireType

    @field_validator("name", "email", "va_name", "hire_type", mode="before")
    @classmethod
    def not_blank(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("field is required")
        return v.strip() if isinstance(v, str) else v


class ClientResponse(BaseModel):
    id: str
    created_at: datetime
    name: str
    email: str
    va_name: str
    hire_type: str
    affiliate_id: Optional[str] = None
    is_hired: bool
    is_paid: bool

    @computed_field
    @property
    def hire_status(self) -> str:
        return payout_service.derive_hire_status(self.is_hired)

    @computed_field
    @property
    def payout_status(self) -> str:
        return payout_service.derive_payout_status(self.is_hired, self.is_paid, self.affiliate_id)

    @computed_field
    @property
    def payout_action(self) -> Optional[str]:
        return payout_service.derive_payout_action(self.is_hired, self.is_paid, self.affiliate_id)

    @computed_field
    @property
    def payout_amount(self) -> Optional[int]:
        return payout_service.payout_amount(self.hire_type)

    class Config:
        from_attributes = True


class PayoutResponse(BaseModel):
    message: str
    client: ClientResponse
