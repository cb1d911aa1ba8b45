# backend/app/core/logging.py

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    프로세스 시작 시 1회 호출.
    각 모듈은 logging.getLogger(__name__)으로 로거를 가져다 씁니다.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx 요청 로그는 너무 시끄러워서 WARNING 이상만
    logging.getLogger("httpx").setLevel(logging.WARNING)
