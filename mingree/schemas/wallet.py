from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class TransactionResponse(BaseModel):
    id: int
    user_id: int
    type: str
    category: str
    amount: float
    tax: float
    net: float
    description: Optional[str] = None
    status: str
    campaign_id: Optional[int] = None
    reservation_id: Optional[int] = None
    withdrawal_request_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BankAccountCreate(BaseModel):
    account_holder_name: str
    account_number: str
    ifsc_code: str
    bank_name: str
    upi_id: Optional[str] = None


class BankAccountResponse(BaseModel):
    id: int
    account_holder_name: str
    account_number: str
    ifsc_code: str
    bank_name: str
    upi_id: Optional[str] = None
    is_default: bool

    class Config:
        from_attributes = True


class WithdrawalCreate(BaseModel):
    amount: float
    bank_account_id: int


class WithdrawalResponse(BaseModel):
    id: int
    user_id: int
    bank_account_id: Optional[int] = None
    amount: float
    gst_amount: float
    net_amount: float
    status: str
    utr_number: Optional[str] = None
    admin_note: Optional[str] = None
    requested_at: datetime
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DepositConfirm(BaseModel):
    user_id: int
    amount: float
    reference: Optional[str] = None
