"""빌드 Service: Core(BuildEngine) ↔ DB(saved_builds) 연결

엔진은 직렬화 가능한 결과만 만든다. 저장/조회/삭제는 여기서 담당.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.orm import Session

from buildsmith.core.engine import BuildEngine, BuildResult
from buildsmith.core.intent.models import BuildIntent, BuildOptions
from buildsmith.db.models import SavedBuildModel

logger = logging.getLogger(__name__)


def _to_options(options: Optional[dict[str, Any] | BuildOptions]) -> BuildOptions:
    if isinstance(options, BuildOptions):
        return options
    return BuildOptions.from_dict(options)


class BuildService:
    """빌드 생성 + 저장 빌드 CRUD"""

    def __init__(self, db: Session, engine: BuildEngine):
        self._db = db
        self._engine = engine

    @property
    def catalog_count(self) -> int:
        return self._engine.catalog.count()

    # === 생성 ===

    def parse(
        self, text: str, options: Optional[dict[str, Any] | BuildOptions] = None
    ) -> BuildIntent:
        return self._engine.parse(text, _to_options(options))

    def validate(self, intent: BuildIntent) -> list[str]:
        return self._engine.validate(intent)

    def generate(
        self, text: str, options: Optional[dict[str, Any] | BuildOptions] = None
    ) -> BuildResult:
        """ConfigurationError는 그대로 전파 (API에서 503)."""
        return self._engine.generate(text, _to_options(options))

    # === 저장 빌드 ===

    def save_build(
        self,
        owner_id: str,
        text: str,
        options: Optional[dict[str, Any] | BuildOptions] = None,
        name: Optional[str] = None,
    ) -> dict[str, Any]:
        """요청을 생성한 뒤 결과 전체를 저장. 반환: 저장 요약."""
        result = self.generate(text, options)
        orm = SavedBuildModel(
            build_id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=name or result.build.name,
            request_text=text,
            activity=result.build.activity,
            overall_score=result.score.overall_score,
            payload=result.to_dict(),
            created_at=datetime.now(timezone.utc),
        )
        self._db.add(orm)
        self._db.commit()

        logger.info("Build saved: owner=%s, build=%s", owner_id, orm.build_id)
        return self._summary(orm)

    def list_builds(self, owner_id: str) -> list[dict[str, Any]]:
        rows = (
            self._db.query(SavedBuildModel)
            .filter(SavedBuildModel.owner_id == owner_id)
            .order_by(SavedBuildModel.created_at.desc(), SavedBuildModel.build_id)
            .all()
        )
        return [self._summary(row) for row in rows]

    def get_build(self, owner_id: str, build_id: str) -> Optional[dict[str, Any]]:
        """저장 빌드 전체. 없거나 소유자가 다르면 None."""
        orm = self._find(owner_id, build_id)
        if orm is None:
            return None
        return {**self._summary(orm), "payload": orm.payload}

    def delete_build(self, owner_id: str, build_id: str) -> bool:
        orm = self._find(owner_id, build_id)
        if orm is None:
            return False
        self._db.delete(orm)
        self._db.commit()
        logger.info("Build deleted: owner=%s, build=%s", owner_id, build_id)
        return True

    # === 내부 ===

    def _find(self, owner_id: str, build_id: str) -> Optional[SavedBuildModel]:
        return (
            self._db.query(SavedBuildModel)
            .filter(
                SavedBuildModel.owner_id == owner_id,
                SavedBuildModel.build_id == build_id,
            )
            .first()
        )

    @staticmethod
    def _summary(orm: SavedBuildModel) -> dict[str, Any]:
        return {
            "build_id": orm.build_id,
            "owner_id": orm.owner_id,
            "name": orm.name,
            "request_text": orm.request_text,
            "activity": orm.activity,
            "overall_score": orm.overall_score,
            "created_at": orm.created_at.isoformat(),
        }
