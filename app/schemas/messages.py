from typing import List

from pydantic import BaseModel, Field


class SmsRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1600)
    recipients: List[str] = Field(..., min_length=1)


class EmailRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=300)
    message: str = Field(..., min_length=1)
    recipients: List[str] = Field(..., min_length=1)
