"""
provision_kit
-------------

terraform 기반 인프라 프로비저닝용 빌드 자동화 CLI 패키지.
환경변수(일반 이름 + `<ENV>_` 접두 오버라이드)로 설정을 해석하고,
terraform 백엔드 선택, 릴리즈 아티팩트 다운로드, terraform/ansible/aws 명령 실행을 순서대로 수행한다.
"""

__all__ = [
    "config",
    "orchestrator",
]
