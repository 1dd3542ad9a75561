"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


# === Request Schemas ===


class BuildOptionsModel(BaseModel):
    """빌드 요청 옵션: 텍스트 파싱 결과보다 우선"""

    locked_item_id: Optional[str] = Field(None, description="반드시 장착할 아이템 ID")
    use_inventory_only: bool = Field(False, description="보유 아이템만 사용")
    inventory_item_ids: list[str] = Field(default_factory=list, description="보유 아이템 ID")
    activity: Optional[str] = Field(None, description="활동: raid, dungeon, nightfall, pvp ...")
    class_type: Optional[str] = Field(None, description="클래스: titan, hunter, warlock")
    element: Optional[str] = Field(None, description="원소: solar, arc, void, stasis, strand")
    include_alternatives: bool = Field(False, description="대안 아키타입 빌드 포함")


class BuildRequest(BaseModel):
    """빌드 파싱/생성 요청"""

    text: str = Field(..., max_length=2000, description="자유 텍스트 요청")
    options: BuildOptionsModel = Field(default_factory=BuildOptionsModel)


class SaveBuildRequest(BuildRequest):
    """빌드 생성 + 저장 요청"""

    owner_id: str = Field(..., min_length=1, max_length=50, description="소유자 ID")
    name: Optional[str] = Field(None, max_length=100, description="저장 이름 (기본: 빌드 이름)")


# === Response Schemas ===


class ParseResponse(BaseModel):
    """의도 파싱 응답"""

    intent: dict[str, Any]
    warnings: list[str] = []


class GenerateResponse(BaseModel):
    """빌드 생성 응답: BuildResult.to_dict()"""

    build: dict[str, Any]
    score: dict[str, Any]
    intent: dict[str, Any]
    archetypes: dict[str, Any]
    stat_effects: list[dict[str, Any]] = []
    warnings: list[str] = []
    alternatives: list[dict[str, Any]] = []


class SavedBuildSummary(BaseModel):
    """저장 빌드 요약"""

    build_id: str
    owner_id: str
    name: str
    request_text: str
    activity: str
    overall_score: int
    created_at: str


class SavedBuildDetail(SavedBuildSummary):
    """저장 빌드 전체"""

    payload: dict[str, Any]


class DeleteResponse(BaseModel):
    success: bool
    build_id: str


class ErrorResponse(BaseModel):
    """에러 응답"""

    success: bool = False
    error: str
    detail: Optional[str] = None
