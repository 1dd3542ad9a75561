"""엔진 예외

파이프라인을 중단시키는 것은 ConfigurationError 하나뿐.
후보 부재, 달성 불가 제약, 파싱 모호성은 Diagnostic/confidence로 결과에 반영된다.
"""


class ConfigurationError(Exception):
    """카탈로그 부재/빈 카탈로그, 규칙 테이블 로드 실패: 복구 시도 없음."""
