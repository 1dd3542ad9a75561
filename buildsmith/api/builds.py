"""Build API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request

from buildsmith.api.schemas import (
    BuildRequest,
    DeleteResponse,
    ErrorResponse,
    GenerateResponse,
    ParseResponse,
    SavedBuildDetail,
    SavedBuildSummary,
    SaveBuildRequest,
)
from buildsmith.core.errors import ConfigurationError
from buildsmith.core.logging import get_logger
from buildsmith.services.build_service import BuildService

logger = get_logger(__name__)

router = APIRouter(prefix="/builds", tags=["builds"])


def get_build_service(request: Request) -> BuildService:
    """BuildService 인스턴스 반환 (의존성 주입)"""
    service: BuildService = request.app.state.build_service
    return service


@router.post("/parse", response_model=ParseResponse)
def parse_request(
    request: BuildRequest,
    service: BuildService = Depends(get_build_service),
) -> ParseResponse:
    """
    요청 텍스트 해석

    빌드를 만들지 않고 BuildIntent와 경고만 반환합니다.
    """
    intent = service.parse(request.text, request.options.model_dump())
    return ParseResponse(intent=intent.to_dict(), warnings=service.validate(intent))


@router.post(
    "/generate",
    response_model=GenerateResponse,
    responses={503: {"model": ErrorResponse}},
)
def generate_build(
    request: BuildRequest,
    service: BuildService = Depends(get_build_service),
) -> GenerateResponse:
    """
    빌드 생성

    텍스트 요청을 해석해 빌드를 조립하고 점수를 매깁니다.
    빈 슬롯이나 달성 불가 제약은 diagnostics로 보고됩니다.
    """
    try:
        result = service.generate(request.text, request.options.model_dump())
    except ConfigurationError as e:
        logger.error("Build generation unavailable: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    return GenerateResponse(**result.to_dict())


@router.post(
    "/saved",
    response_model=SavedBuildSummary,
    status_code=201,
    responses={503: {"model": ErrorResponse}},
)
def save_build(
    request: SaveBuildRequest,
    service: BuildService = Depends(get_build_service),
) -> SavedBuildSummary:
    """빌드 생성 후 저장"""
    try:
        saved = service.save_build(
            request.owner_id,
            request.text,
            request.options.model_dump(),
            name=request.name,
        )
    except ConfigurationError as e:
        logger.error("Build generation unavailable: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
    return SavedBuildSummary(**saved)


@router.get("/saved/{owner_id}", response_model=list[SavedBuildSummary])
def list_saved_builds(
    owner_id: str,
    service: BuildService = Depends(get_build_service),
) -> list[SavedBuildSummary]:
    """소유자의 저장 빌드 목록 (최신순)"""
    return [SavedBuildSummary(**b) for b in service.list_builds(owner_id)]


@router.get(
    "/saved/{owner_id}/{build_id}",
    response_model=SavedBuildDetail,
    responses={404: {"model": ErrorResponse}},
)
def get_saved_build(
    owner_id: str,
    build_id: str,
    service: BuildService = Depends(get_build_service),
) -> SavedBuildDetail:
    saved = service.get_build(owner_id, build_id)
    if saved is None:
        raise HTTPException(status_code=404, detail=f"Build not found: {build_id}")
    return SavedBuildDetail(**saved)


@router.delete(
    "/saved/{owner_id}/{build_id}",
    response_model=DeleteResponse,
    responses={404: {"model": ErrorResponse}},
)
def delete_saved_build(
    owner_id: str,
    build_id: str,
    service: BuildService = Depends(get_build_service),
) -> DeleteResponse:
    if not service.delete_build(owner_id, build_id):
        raise HTTPException(status_code=404, detail=f"Build not found: {build_id}")
    return DeleteResponse(success=True, build_id=build_id)
