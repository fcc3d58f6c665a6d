"""
Worker 패키지

작업 큐와 CLI 명령 실행.
"""
