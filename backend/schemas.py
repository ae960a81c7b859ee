from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, StrictBool


# Free-text fields are stored exactly as sent; pdfFile must be a filename and
# isAvailable a real JSON boolean ("yes" is rejected, not coerced).
class MaterialCreate(BaseModel):
    title: Any = None
    subtitle: Any = None
    pdfFile: Optional[str] = None
    isAvailable: Optional[StrictBool] = False
    availableDate: Any = None


class MaterialUpdate(BaseModel):
    """Partial update; only the keys the client actually sent are merged."""

    # Extra keys are kept and merged onto the record as-is
    model_config = ConfigDict(extra="allow")

    title: Any = None
    subtitle: Any = None
    pdfFile: Optional[str] = None
    isAvailable: Optional[StrictBool] = None
    availableDate: Any = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
