from typing import Optional, List, Any
from pydantic import BaseModel, ConfigDict, field_validator


class ImageDescriptor(BaseModel):
    src: Optional[str] = None
    filter: Optional[str] = None


class HostedFile(BaseModel):
    """The fields of a hosting response that the gateway relies on."""
    model_config = ConfigDict(extra="ignore")

    url: str
    fileId: str
    name: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @field_validator("url", "fileId", "name", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        return v if v is None else str(v)

    @field_validator("width", "height", mode="before")
    @classmethod
    def _whole_number(cls, v: Any) -> Optional[int]:
        if v is None or v == "":
            return None
        return int(float(v))


class ImageMeta(BaseModel):
    width: Optional[int] = None
    height: Optional[int] = None


class ImageRecord(BaseModel):
    url: str
    fileId: Optional[str] = None
    fileName: Optional[str] = None
    filter: Optional[str] = None
    meta: ImageMeta = ImageMeta()


class UploadResult(BaseModel):
    uploaded: bool
    url: Optional[str] = None
    id: Optional[str] = None
    error: Optional[str] = None


class UploadResponse(BaseModel):
    success: bool = True
    results: List[UploadResult]


class ProbeUploadResponse(BaseModel):
    success: bool = True
    upload: dict
    id: str
